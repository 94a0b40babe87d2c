"""
Config file templates written by the pipeline.

Placeholders are ``{key}`` tokens substituted by ``render_template``
with plain string replacement (no format-spec parsing), so the nginx
and shell braces in the templates need no escaping.
"""

from __future__ import annotations

NGINX_SITE = """\
server {
    listen 80;
    listen [::]:80;
    server_name {domain} {www_domain};
    root {site_dir};
    index index.php index.html;

    client_max_body_size {upload_max_filesize};

    access_log /var/log/nginx/{domain}.access.log;
    error_log /var/log/nginx/{domain}.error.log;

    location / {
        try_files $uri $uri/ /index.php?$args;
    }

    location ~ \\.php$ {
        include snippets/fastcgi-php.conf;
        fastcgi_pass unix:{php_fpm_socket};
    }

    location ~ /\\.ht {
        deny all;
    }

    location = /xmlrpc.php {
        deny all;
    }
}
"""

MYSQL_CLIENT_CNF = """\
[client]
user=root
password={db_root_password}
"""

SASL_PASSWD = """\
[{relay_host}]:{relay_port} {mailgun_username}:{mailgun_password}
"""

WP_CRON = """\
# WordPress cron for {domain} (DISABLE_WP_CRON is set in wp-config.php)
*/5 * * * * {web_user} {wp_cli_path} cron event run --due-now --quiet --path={site_dir}
"""

FAIL2BAN_JAIL = """\
[DEFAULT]
bantime = 1h
findtime = 10m
maxretry = 5
destemail = {notification_email}

[sshd]
enabled = true

[nginx-http-auth]
enabled = true
"""

AUTO_UPGRADES = """\
APT::Periodic::Update-Package-Lists "1";
APT::Periodic::Unattended-Upgrade "1";
APT::Periodic::AutocleanInterval "7";
"""

SWAP_SYSCTL = """\
vm.swappiness={swappiness}
"""

SWAP_FSTAB_LINE = "/swapfile none swap sw 0 0\n"


def render_template(template: str, inputs: dict) -> str:
    """Substitute ``{key}`` placeholders with input values.

    Simple string replacement — no Jinja, no escaping. Unknown tokens
    are left in place.
    """
    rendered = template
    for key, value in inputs.items():
        rendered = rendered.replace(f"{{{key}}}", str(value))
    return rendered
