"""
Email service for order confirmations.
Uses Flask-Mail for SMTP delivery. Sending never affects the order itself.
"""
import logging
from typing import Optional

from flask import current_app
from flask_mail import Mail, Message

from storefront.utils.formatters import money_inr

logger = logging.getLogger(__name__)

mail = Mail()


def init_mail(app):
    """Initialize Flask-Mail with app."""
    mail.init_app(app)


def _mail_enabled() -> bool:
    """
    Check if mail is properly configured and enabled.
    Prevents errors in dev or misconfigured environments.
    """
    cfg = current_app.config
    return bool(
        not cfg.get("MAIL_SUPPRESS_SEND", False)
        and cfg.get("MAIL_SERVER")
        and cfg.get("MAIL_USERNAME")
    )


def send_order_confirmation(
    to_email: str,
    customer_name: str,
    order: dict,
    reward_code: Optional[str] = None,
    reward_percent: Optional[int] = None,
) -> bool:
    """
    Send the order receipt, including the reward code when one was minted.

    Args:
        to_email: Purchaser email
        customer_name: Purchaser display name
        order: Serialized order (Order.to_dict())
        reward_code: Newly minted reward code, if this was an Nth order

    Returns:
        True if sent (or mail disabled), False on delivery failure
    """
    try:
        if not _mail_enabled():
            logger.info(f"[MAIL DISABLED] Order confirmation skipped for {to_email}")
            return True

        rows = "".join(
            f"""
            <tr>
                <td>{line['name']}</td>
                <td align="center">{line['quantity']}</td>
                <td align="right">{money_inr(line['total'])}</td>
            </tr>
            """
            for line in order['items']
        )

        discount_row = ""
        if order.get('discountAmount'):
            discount_row = f"""
            <tr>
                <td colspan="2">Discount ({order['discountCode']}, {order['discountPercent']}%)</td>
                <td align="right">-{money_inr(order['discountAmount'])}</td>
            </tr>
            """

        reward_html = ""
        reward_text = ""
        if reward_code:
            reward_html = f"""
            <div style="background:#fff3cd;padding:15px;margin-top:20px;border-radius:5px;">
                <p>You placed a milestone order! Here is {reward_percent}% off your next purchase:</p>
                <p style="font-size:20px;font-weight:bold;letter-spacing:2px;">{reward_code}</p>
            </div>
            """
            reward_text = f"\nMilestone reward: {reward_percent}% off your next purchase with code {reward_code}\n"

        html_body = f"""
        <!DOCTYPE html>
        <html>
        <head><meta charset="UTF-8"></head>
        <body style="font-family: Arial, sans-serif; color: #333;">
            <div style="max-width: 600px; margin: auto; padding: 20px;">
                <h2>Thanks for your order, {customer_name}!</h2>
                <p>Order <strong>#{order['orderNumber']}</strong> is confirmed.</p>
                <table border="1" cellpadding="8" cellspacing="0" width="100%">
                    <tr><th>Item</th><th>Qty</th><th>Total</th></tr>
                    {rows}
                    <tr><td colspan="2">Subtotal</td><td align="right">{money_inr(order['subtotal'])}</td></tr>
                    {discount_row}
                    <tr><td colspan="2"><strong>Total</strong></td>
                        <td align="right"><strong>{money_inr(order['total'])}</strong></td></tr>
                </table>
                {reward_html}
            </div>
        </body>
        </html>
        """

        text_body = f"""
Hi {customer_name},

Order #{order['orderNumber']} is confirmed.
Total paid: {money_inr(order['total'])}
{reward_text}"""

        msg = Message(
            subject=f"Order #{order['orderNumber']} confirmed",
            recipients=[to_email],
            body=text_body,
            html=html_body,
        )
        mail.send(msg)
        logger.info(f"[EMAIL] Order confirmation sent to {to_email} (order #{order['orderNumber']})")
        return True

    except Exception as e:
        logger.exception(f"[EMAIL] Failed to send order confirmation to {to_email}: {e}")
        return False
