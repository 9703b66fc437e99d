"""
Clients for third-party HTTP APIs (Cloudflare Turnstile, Resend).
"""
