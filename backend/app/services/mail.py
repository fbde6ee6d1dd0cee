import logging, smtplib
from email.message import EmailMessage
from email.utils import formataddr
from app.core.config import get_settings

logger = logging.getLogger(__name__)

class MailError(RuntimeError):
    pass

def send_html(to: str, subject: str, html: str) -> None:
    settings = get_settings()
    if not settings.smtp_host:
        raise MailError("SMTP_HOST is not configured")
    msg = EmailMessage()
    msg['From'] = formataddr((settings.mail_from_name, settings.mail_from))
    msg['To'] = to
    msg['Subject'] = subject
    msg.set_content("HTML 메일을 지원하는 클라이언트에서 확인해 주세요.")
    msg.add_alternative(html, subtype='html')
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as smtp:
            smtp.starttls()
            if settings.smtp_user:
                smtp.login(settings.smtp_user, settings.smtp_password)
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("mail to %s failed: %s", to, e)
        raise MailError(str(e)) from e
