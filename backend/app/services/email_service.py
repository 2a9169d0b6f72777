"""
Service d'envoi d'emails SMTP.
Utilisé pour les rappels à l'instructeur (prise de présence, finalisation).
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from app.config import settings

logger = logging.getLogger(__name__)


def send_reminder_email(to_email: str, title: str, message: str) -> None:
    """
    Envoie un rappel court (texte + HTML) à l'instructeur.
    Lève une exception en cas d'échec SMTP.
    """
    msg = MIMEMultipart("alternative")
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = f"DojoTrack — {title}"

    html_content = f"""
    <html>
      <body style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: auto;">
        <h2 style="color: #58cc02;">{title}</h2>
        <p>{message}</p>
        <hr style="border: none; border-top: 1px solid #eee;" />
        <p style="font-size: 12px; color: #888;">
          Ce message est généré automatiquement par DojoTrack. Les rappels se désactivent
          depuis l'écran Profil.
        </p>
      </body>
    </html>
    """

    msg.attach(MIMEText(message, "plain", "utf-8"))
    msg.attach(MIMEText(html_content, "html", "utf-8"))

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        if settings.SMTP_USE_TLS:
            server.starttls()
        if settings.SMTP_USERNAME:
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.send_message(msg)

    logger.info("Rappel « %s » envoyé à %s", title, to_email)
