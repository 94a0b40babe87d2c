"""
Shared test data.
"""

STRONG = "Str0ng!Passw0rd"


def site_answers(**overrides) -> dict:
    """A complete, valid set of answers (as in an answers file)."""
    answers = {
        "username": "deploy",
        "user_password": STRONG,
        "domain": "example.com",
        "db_root_password": STRONG,
        "db_user": "wpuser",
        "db_user_password": STRONG,
        "db_table_prefix": "wp",
        "use_mailgun": False,
        "use_swap": True,
        "use_jetpack": False,
        "site_name": "Example Site",
        "admin_user": "siteadmin",
        "admin_password": STRONG,
        "admin_email": "admin@example.com",
        "theme_slug": "twentytwentyfour",
        "notification_email": "ops@example.com",
    }
    answers.update(overrides)
    return answers
