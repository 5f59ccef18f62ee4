import sys
from pulse.config import RESEND_API_KEY, RESEND_FROM_EMAIL
import resend

if RESEND_API_KEY:
    resend.api_key = RESEND_API_KEY

def normalize_email(email: str) -> str:
    return (email or "").strip().lower()

def _send(to_email: str, subject: str, html: str, tag: str):
    try:
        params = {
            "from": RESEND_FROM_EMAIL,
            "to": [to_email],
            "subject": subject,
            "html": html,
        }
        resend.Emails.send(params)
        print(f"[{tag}] Sent to {to_email}", file=sys.stderr)
    except Exception as e:
        # Don't fail the social action if email fails; just log it.
        print(f"[{tag}] Failed to send via Resend: {e}", file=sys.stderr)

def send_friend_request_email(to_profile, from_profile):
    """
    Let someone know they have a new friend request.

    - Skipped when the recipient has no email on file.
    - If RESEND_API_KEY is not set, just log to stderr (local dev).
    """
    email = normalize_email(to_profile.email)
    if not email:
        return

    if not RESEND_API_KEY:
        print(f"[FRIEND REQUEST - DEV ONLY] {from_profile.name} -> {email}", file=sys.stderr)
        return

    html = f"""
      <div style="font-family: system-ui, -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; padding: 16px;">
        <p>Hey {to_profile.name} 👋</p>
        <p><strong>{from_profile.name}</strong> wants to be friends.</p>
        <p>Open the app to accept or ignore the request.</p>
      </div>
    """
    _send(email, f"{from_profile.name} sent you a friend request", html, "FRIEND REQUEST")

def send_challenge_email(to_profile, from_profile, task, message=None):
    """
    Email the challenged friend the task and the optional dare message.
    """
    email = normalize_email(to_profile.email)
    if not email:
        return

    task_title = task.title if task else "a task"

    if not RESEND_API_KEY:
        print(f"[CHALLENGE - DEV ONLY] {from_profile.name} -> {email}: {task_title}", file=sys.stderr)
        return

    message_html = f'<p style="font-style: italic;">“{message}”</p>' if message else ""
    html = f"""
      <div style="font-family: system-ui, -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; padding: 16px;">
        <p>Hey {to_profile.name} 👋</p>
        <p><strong>{from_profile.name}</strong> challenged you to:</p>
        <p style="font-weight: 600; margin: 8px 0;">{task_title}</p>
        {message_html}
        <p>Open the app to accept or decline.</p>
      </div>
    """
    _send(email, f"{from_profile.name} challenged you", html, "CHALLENGE")
