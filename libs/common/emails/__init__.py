"""
da-hi Marketplace Email Package.

Modules:
- core: Base send_email function (SMTP)
- marketplace: Order confirmation, seller notification and shipping templates
"""
