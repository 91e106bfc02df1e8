"""
HTML and plain text templates for invitation emails and QR pages.
"""
import html

QR_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <title>Your invitation</title>
</head>
<body style="font-family: Arial, sans-serif; text-align: center; margin-top: 40px;">
    <h2>Your invitation</h2>
    <img src="data:image/png;base64,{image}" alt="Invitation QR code">
    <p><a href="{short_url}">{short_url}</a></p>
</body>
</html>
"""

INVITATION_EMAIL_SUBJECT = "Your invitation"

INVITATION_EMAIL_HTML = """<html>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <h2 style="color: #2563eb;">You are invited</h2>

    <p>Hello dear customer.</p>

    <p>Show this QR code at the entrance or open the link below. It can be used only once.</p>

    <div style="text-align: center; margin: 20px 0;">
        <img src="data:image/png;base64,{image}" alt="Invitation QR code">
    </div>

    <p>
        <a href="{short_url}"
           style="background-color: #2563eb; color: white; padding: 10px 20px; text-decoration: none; border-radius: 5px; display: inline-block;">
            Open your invitation
        </a>
    </p>
</body>
</html>
"""

INVITATION_EMAIL_TEXT = """Hello dear customer.

Your invitation link (valid once): {short_url}
"""


def render_qr_page(image: str, short_url: str) -> str:
    return QR_PAGE_TEMPLATE.format(image=image, short_url=html.escape(short_url, quote=True))


def render_invitation_email(image: str, short_url: str):
    """Return the (html, text) bodies of an invitation email."""
    html_body = INVITATION_EMAIL_HTML.format(image=image, short_url=html.escape(short_url, quote=True))
    text_body = INVITATION_EMAIL_TEXT.format(short_url=short_url)
    return html_body, text_body
