"""Fixed paths, URLs and package lists used by the pipeline."""

# Environment file
ENV_FILE = ".env"

# Web server
NGINX_SITES_AVAILABLE = "/etc/nginx/sites-available"
NGINX_SITES_ENABLED = "/etc/nginx/sites-enabled"
WWW_ROOT = "/var/www"
WEB_USER = "www-data"
WEB_GROUP = "www-data"

# PHP runtime
PHP_VERSION = "8.4"
PHP_FPM_UNIT = f"php{PHP_VERSION}-fpm"
PHP_FPM_SOCKET = f"/run/php/php{PHP_VERSION}-fpm.sock"
PHP_PPA = "ppa:ondrej/php"
PHP_PPA_PATTERN = r"ondrej(/|-)php|ppa\.launchpadcontent\.net/ondrej/php"
PHP_PACKAGES = [
    f"php{PHP_VERSION}-fpm",
    f"php{PHP_VERSION}-cli",
    f"php{PHP_VERSION}-common",
    f"php{PHP_VERSION}-mysql",
    f"php{PHP_VERSION}-curl",
    f"php{PHP_VERSION}-gd",
    f"php{PHP_VERSION}-intl",
    f"php{PHP_VERSION}-mbstring",
    f"php{PHP_VERSION}-soap",
    f"php{PHP_VERSION}-xml",
    f"php{PHP_VERSION}-zip",
]
REPO_TOOLS = [
    "software-properties-common",
    "ca-certificates",
    "lsb-release",
    "apt-transport-https",
]

# Database
DB_CHARSET = "utf8"
DB_COLLATION = "utf8_unicode_ci"
# Answers to mysql_secure_installation: skip VALIDATE PASSWORD, then accept
# every hardening question.
MYSQL_SECURE_ANSWERS = "n\ny\ny\ny\ny\ny\n"

# WordPress
WORDPRESS_ARCHIVE_URL = "https://wordpress.org/latest.tar.gz"
WORDPRESS_SALT_URL = "https://api.wordpress.org/secret-key/1.1/salt/"

# Commands that must exist before any work begins
REQUIRED_TOOLS = ["apt-get", "dpkg-query", "systemctl"]
