"""Customer-facing forms: accounts, cart and checkout."""
from wtforms import StringField, PasswordField, IntegerField
from wtforms.validators import DataRequired, InputRequired, Email, Length, NumberRange

from storefront.forms import JsonForm


class SignupForm(JsonForm):
    name = StringField('Name', validators=[
        DataRequired(message='Name is required'),
        Length(min=2, max=200, message='Name must be at least 2 characters'),
    ])
    email = StringField('Email', validators=[
        DataRequired(message='Email is required'),
        Email(message='Invalid email address'),
        Length(max=255),
    ])
    password = PasswordField('Password', validators=[
        DataRequired(message='Password is required'),
        Length(min=6, message='Password must be at least 6 characters'),
    ])


class LoginForm(JsonForm):
    email = StringField('Email', validators=[DataRequired(message='Email is required')])
    password = PasswordField('Password', validators=[DataRequired(message='Password is required')])


class AddToCartForm(JsonForm):
    json_aliases = {'productId': 'product_id'}

    product_id = IntegerField('Product', validators=[InputRequired(message='Product ID is required')])
    quantity = IntegerField('Quantity', default=1, validators=[
        NumberRange(min=1, message='Quantity must be at least 1'),
    ])


class UpdateCartItemForm(JsonForm):
    quantity = IntegerField('Quantity', validators=[
        InputRequired(message='Quantity is required'),
        NumberRange(min=1, message='Quantity must be at least 1'),
    ])


class ApplyDiscountForm(JsonForm):
    code = StringField('Code', validators=[DataRequired(message='Discount code is required')])


class ShippingAddressForm(JsonForm):
    name = StringField('Name', validators=[
        DataRequired(message='Name is required'), Length(min=2, message='Name is too short'),
    ])
    address = StringField('Address', validators=[
        DataRequired(message='Address is required'), Length(min=5, message='Address is too short'),
    ])
    city = StringField('City', validators=[
        DataRequired(message='City is required'), Length(min=2, message='City is too short'),
    ])
    state = StringField('State', validators=[
        DataRequired(message='State is required'), Length(min=2, message='State is too short'),
    ])
    pincode = StringField('Pincode', validators=[
        DataRequired(message='Pincode is required'), Length(min=6, max=10, message='Invalid pincode'),
    ])
    phone = StringField('Phone', validators=[
        DataRequired(message='Phone is required'), Length(min=10, max=15, message='Invalid phone number'),
    ])

    def to_address(self):
        return {name: field.data.strip() for name, field in self._fields.items()}


class ConfirmPaymentForm(JsonForm):
    json_aliases = {
        'razorpayOrderId': 'razorpay_order_id',
        'razorpayPaymentId': 'razorpay_payment_id',
        'razorpaySignature': 'razorpay_signature',
    }

    razorpay_order_id = StringField('Order', validators=[DataRequired(message='Payment details missing')])
    razorpay_payment_id = StringField('Payment', validators=[DataRequired(message='Payment details missing')])
    razorpay_signature = StringField('Signature', validators=[DataRequired(message='Payment signature missing')])
