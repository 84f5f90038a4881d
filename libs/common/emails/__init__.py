"""
Storefront email package.

Modules:
- core: result types (EmailSent / EmailFailed) and the SMTP fallback sender
- client: EmailClient for the Resend HTTP API
- store: order confirmation template
"""
