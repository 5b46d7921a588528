"""
Services module - domain operations behind the routes.

- OtpService: issue and verify login codes
- JobService: post and browse jobs
- ApplicationService: apply, accept, decline
- EmailService: templated SMTP notifications
"""
