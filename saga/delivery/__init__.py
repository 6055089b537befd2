"""Digest delivery channels."""

from saga.delivery.mailer import Deliverer, DeliveryError, SmtpDeliverer

__all__ = ["Deliverer", "DeliveryError", "SmtpDeliverer"]
