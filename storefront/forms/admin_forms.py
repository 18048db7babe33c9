"""
Admin forms for store settings, discount codes, products and orders.
"""
from wtforms import StringField, TextAreaField, DecimalField, IntegerField, BooleanField, SelectField
from wtforms.validators import DataRequired, InputRequired, NumberRange, Length, Optional

from storefront.forms import JsonForm
from storefront.models import OrderStatus


class StoreSettingsForm(JsonForm):
    """Partial update of the reward scheme; missing keys keep their value."""

    json_aliases = {
        'nthOrderDiscount': 'nth_order_discount',
        'discountPercent': 'discount_percent',
        'defaultDiscountExpiry': 'default_discount_expiry',
    }

    nth_order_discount = IntegerField('Every Nth order', validators=[
        Optional(), NumberRange(min=1, message='nthOrderDiscount must be at least 1'),
    ])
    discount_percent = IntegerField('Reward percent', validators=[
        Optional(), NumberRange(min=1, max=100, message='discountPercent must be between 1 and 100'),
    ])
    default_discount_expiry = IntegerField('Default expiry (days)', validators=[
        Optional(), NumberRange(min=1, message='defaultDiscountExpiry must be at least 1 day'),
    ])


class GenerateDiscountForm(JsonForm):
    """Manual code generation. Both values fall back to the store settings."""

    json_aliases = {'discountPercent': 'discount_percent', 'expiryDays': 'expiry_days'}

    discount_percent = IntegerField('Percent', validators=[
        Optional(), NumberRange(min=1, max=100, message='Discount must be between %(min)s%% and %(max)s%%'),
    ])
    expiry_days = IntegerField('Expiry (days)', validators=[
        Optional(), NumberRange(min=1, message='expiryDays must be at least 1'),
    ])


class DiscountExpiryForm(JsonForm):
    json_aliases = {'discountId': 'id', 'expiryDays': 'expiry_days'}

    id = IntegerField('Discount', validators=[InputRequired(message='Discount ID is required')])
    expiry_days = IntegerField('Expiry (days)', validators=[
        Optional(), NumberRange(min=0, message='expiryDays must be positive'),
    ])


class ProductForm(JsonForm):
    json_aliases = {'isActive': 'active'}

    name = StringField('Name', validators=[DataRequired(message='Name is required'), Length(max=200)])
    description = TextAreaField('Description', validators=[Optional()])
    price = DecimalField('Price', places=2, validators=[
        InputRequired(message='Price is required'),
        NumberRange(min=0, message='Price cannot be negative'),
    ])
    image = StringField('Image', validators=[Optional(), Length(max=500)])
    category = StringField('Category', validators=[DataRequired(message='Category is required'), Length(max=100)])
    stock = IntegerField('Stock', default=0, validators=[
        Optional(), NumberRange(min=0, message='Stock cannot be negative'),
    ])
    active = BooleanField('Active', default=True)


class ProductUpdateForm(JsonForm):
    """Every field optional; only keys present in the request are applied."""

    json_aliases = {'isActive': 'active'}

    name = StringField('Name', validators=[Optional(), Length(min=1, max=200)])
    description = TextAreaField('Description', validators=[Optional()])
    price = DecimalField('Price', places=2, validators=[
        Optional(), NumberRange(min=0, message='Price cannot be negative'),
    ])
    image = StringField('Image', validators=[Optional(), Length(max=500)])
    category = StringField('Category', validators=[Optional(), Length(min=1, max=100)])
    stock = IntegerField('Stock', validators=[Optional(), NumberRange(min=0, message='Stock cannot be negative')])
    active = BooleanField('Active')


class OrderStatusForm(JsonForm):
    status = SelectField(
        'Status',
        choices=[(status, status.title()) for status in OrderStatus.ALL],
        validators=[DataRequired(message='Status is required')],
    )
