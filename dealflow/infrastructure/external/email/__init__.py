"""Mail transports: Resend API and dry-run logging, selected by create_mail_transport."""

from dealflow.infrastructure.external.email.factory import create_mail_transport
from dealflow.infrastructure.external.email.log_only_transport import LogOnlyMailTransport
from dealflow.infrastructure.external.email.resend_transport import ResendMailTransport

__all__ = [
    "LogOnlyMailTransport",
    "ResendMailTransport",
    "create_mail_transport",
]
