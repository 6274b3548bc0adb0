# -*- coding: utf-8 -*-
# typographic/schemas/billing.py
from marshmallow import EXCLUDE, Schema, ValidationError, fields, pre_load, validate


class RequestSchema(Schema):
    class Meta:
        unknown = EXCLUDE


class CredentialsSchema(RequestSchema):
    email = fields.String(required=True, validate=validate.Length(min=1, max=255))
    password = fields.String(required=True, validate=validate.Length(min=1))


class PlanSchema(RequestSchema):
    plan = fields.String(required=True, validate=validate.Length(min=1))


class FontList(fields.Field):
    """A comma-separated string or a list of font ids."""

    def _deserialize(self, value, attr, data, **kwargs):
        if value is None:
            return None
        if isinstance(value, str):
            return value
        if isinstance(value, list) and all(isinstance(v, str) for v in value):
            return value
        raise ValidationError("Must be a string or a list of strings.")


class FontsSchema(RequestSchema):
    fonts = FontList(required=True, allow_none=True)


class UsageSchema(RequestSchema):
    numRequests = fields.Integer(required=True, strict=True,
                                 validate=validate.Range(min=1))

    @pre_load
    def reject_booleans(self, data, **kwargs):
        # JSON true would otherwise load as 1
        if isinstance(data, dict) and isinstance(data.get("numRequests"), bool):
            raise ValidationError("Not a valid integer.", "numRequests")
        return data


class PaymentMethodSchema(RequestSchema):
    paymentMethodId = fields.String(required=True, validate=validate.Length(min=1))


class SourceSchema(RequestSchema):
    token = fields.String(required=True, validate=validate.Length(min=1))
