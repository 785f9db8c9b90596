"""Subject and HTML bodies for queued emails."""

from __future__ import annotations

from html import escape


def _wrap(title: str, body: str) -> str:
	return (
		"<!doctype html><html><body style=\"font-family:sans-serif\">"
		f"<h2>{escape(title)}</h2>{body}"
		"<p style=\"color:#888\">Hearth</p></body></html>"
	)


def forgot_password(username: str, reset_link: str) -> tuple[str, str]:
	body = (
		f"<p>Hi {escape(username)},</p>"
		"<p>We received a request to reset your password. The link expires in one hour.</p>"
		f"<p><a href=\"{escape(reset_link)}\">Reset password</a></p>"
	)
	return "Reset your password", _wrap("Password reset", body)


def password_changed(username: str, email: str, ip_address: str, when: str) -> tuple[str, str]:
	body = (
		f"<p>Hi {escape(username)},</p>"
		f"<p>The password for {escape(email)} was changed on {escape(when)} from {escape(ip_address)}.</p>"
		"<p>If this was not you, reset your password right away.</p>"
	)
	return "Password reset confirmation", _wrap("Password updated", body)


def notification(username: str, message: str, header: str) -> tuple[str, str]:
	body = f"<p>Hi {escape(username)},</p><p>{escape(message)}</p>"
	return header, _wrap(header, body)
