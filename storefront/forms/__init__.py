"""
WTForms fed from JSON request bodies.

Request payloads are flattened into a MultiDict of strings first so the
standard field coercion applies (decimals from their text, booleans as
'y'/'false').
"""
from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict

from storefront.exceptions import ValidationError


def _to_form_value(value):
    if isinstance(value, bool):
        return 'y' if value else 'false'
    return str(value)


class JsonForm(FlaskForm):
    """Base form bound to a JSON object instead of request.form."""

    # JSON key -> field name, for camelCase API keys
    json_aliases = {}

    class Meta:
        # CSRFProtect already checks the X-CSRFToken header for the whole request
        csrf = False

    @classmethod
    def from_json(cls, data, **kwargs):
        formdata = MultiDict()
        for key, value in (data or {}).items():
            if value is None or isinstance(value, (dict, list)):
                continue
            formdata.add(cls.json_aliases.get(key, key), _to_form_value(value))
        return cls(formdata=formdata, **kwargs)

    def validate_or_raise(self):
        """Validate and raise ValidationError with the first message."""
        if not self.validate():
            for field_errors in self.errors.values():
                if field_errors:
                    raise ValidationError(field_errors[0], payload={'errors': self.errors})
            raise ValidationError('Invalid request')
        return self

    @classmethod
    def supplied_fields(cls, data):
        """Field names whose JSON key (or alias) is present with a non-null value."""
        return {
            cls.json_aliases.get(key, key)
            for key, value in (data or {}).items()
            if value is not None
        }
