"""Transactional email: Resend client, HTML templates, calendar invite and Mailer."""
