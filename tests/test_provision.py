"""
Tests for the provisioning steps against a scripted host.
"""

from slemp.core.engine.executor import StepExecutor
from slemp.core.models.config import PhpVersion, QueueDriver
from slemp.core.models.receipt import Receipt
from slemp.core.services.provision import build_install_steps
from slemp.core.services.provision.database import mariadb, sql_string
from slemp.core.services.provision.php import php_extensions, php_fpm_pool, php_runtime
from slemp.core.services.provision.redis import (
    configure_redis_text,
    redis,
    set_directive,
    set_save_points,
)
from slemp.core.services.provision.security import certbot, firewall
from slemp.core.services.provision.services import service_restart
from slemp.core.services.provision.system import system_update
from slemp.core.services.provision.tooling import composer, nodejs
from slemp.core.services.provision.web import nginx, project_scaffold, render_site_config
from slemp.core.services.provision.workers import (
    PERMISSION_HELPER,
    permission_helper,
    queue_command,
    queue_workers,
    scheduler,
)


def _with(ctx, **update):
    ctx.config = ctx.config.model_copy(update=update)
    return ctx


def _fail_sql(runner, monkeypatch, statement, error):
    """Fail root ``mysql -e`` calls whose SQL starts with ``statement``."""
    original = runner.run

    def run(cmd, **kwargs):
        if cmd[:3] == ["mysql", "-u", "root"] and cmd[-1].startswith(statement):
            runner.call_log.append({"cmd": list(cmd), "input": None, "env": {}})
            return Receipt.failure(cmd, error)
        return original(cmd, **kwargs)

    monkeypatch.setattr(runner, "run", run)


# ── Step list ────────────────────────────────────────────────────────


class TestInstallSteps:
    def test_order(self):
        names = [s.name for s in build_install_steps()]
        assert names == [
            "system-update",
            "nginx",
            "project-scaffold",
            "php-runtime",
            "php-extensions",
            "php-fpm-pool",
            "mariadb",
            "composer",
            "nodejs",
            "redis",
            "supervisor",
            "queue-workers",
            "permission-helper",
            "scheduler",
            "firewall",
            "certbot",
            "service-restart",
        ]

    def test_noncritical_steps(self):
        relaxed = {s.name for s in build_install_steps() if not s.critical}
        assert relaxed == {"php-extensions", "certbot", "service-restart"}

    def test_full_run_on_healthy_host(self, ctx, fs, monkeypatch):
        monkeypatch.setattr(fs, "is_socket", lambda path: True)
        report = StepExecutor(build_install_steps()).run(ctx)
        assert not report.aborted
        assert report.total == 17
        assert report.get("certbot").status == "skipped"


# ── system-update ────────────────────────────────────────────────────


class TestSystemUpdate:
    def test_happy_path(self, ctx, runner):
        result = system_update(ctx)
        assert result.status == "ok"
        assert runner.called("killall apt apt-get")
        assert runner.called("apt-get update")
        assert runner.called("apt-get install -y")

    def test_update_retried_then_fatal(self, ctx, runner):
        runner.set_failure("apt-get update", "network down", returncode=100)
        result = system_update(ctx)
        assert result.failed
        assert result.exit_code == 100
        assert len(runner.calls_matching("apt-get update")) == 3

    def test_held_lock_times_out(self, ctx, runner):
        runner.set_response("fuser", "1234")
        result = system_update(ctx)
        assert result.failed
        assert "dpkg lock" in result.error
        assert not runner.called("apt-get update")

    def test_upgrade_failure_is_a_warning(self, ctx, runner):
        runner.set_failure("apt-get upgrade")
        result = system_update(ctx)
        assert result.status == "warning"


# ── nginx / project-scaffold ─────────────────────────────────────────


class TestNginx:
    def test_removes_default_web_files(self, ctx, fs):
        fs.write_text("/var/www/html/index.html", "welcome")
        fs.write_text("/var/www/index.nginx-debian.html", "welcome")
        assert nginx(ctx).ok
        assert fs.is_dir("/var/www/html")
        assert not fs.exists("/var/www/html/index.html")
        assert not fs.exists("/var/www/index.nginx-debian.html")

    def test_config_test_failure_is_fatal(self, ctx, runner):
        runner.set_failure("nginx -t", "syntax error")
        result = nginx(ctx)
        assert result.failed
        assert "syntax error" in result.error

    def test_start_failure_is_fatal(self, ctx, runner):
        runner.set_failure("systemctl start nginx", "Job for nginx.service failed")
        result = nginx(ctx)
        assert result.failed
        assert "nginx start" in result.error
        assert not runner.called("nginx -t")


class TestProjectScaffold:
    def test_site_config(self, ctx):
        text = render_site_config(ctx)
        assert "server_name acme.com;" in text
        assert "root /var/www/acme/public;" in text
        assert "unix:/run/php/php8.3-fpm-acme.sock" in text
        assert "{" in text and "{domain}" not in text

    def test_is_idempotent(self, ctx, fs):
        fs.write_text("/etc/nginx/sites-enabled/default", "default")
        assert project_scaffold(ctx).ok
        first = fs.read_text(ctx.config.site_config_path)
        assert project_scaffold(ctx).ok
        assert fs.read_text(ctx.config.site_config_path) == first
        assert fs.path(ctx.config.site_enabled_path).is_symlink()
        assert fs.glob("/etc/nginx/sites-enabled/*") == [ctx.config.site_enabled_path]
        assert fs.is_file("/var/www/acme/DEPLOY_LARAVEL_HERE.md")

    def test_reload_failure_is_fatal(self, ctx, runner):
        runner.set_failure("systemctl reload nginx")
        assert project_scaffold(ctx).failed


# ── PHP ──────────────────────────────────────────────────────────────


class TestPhp:
    def test_runtime_installs_core_packages(self, ctx, runner):
        assert php_runtime(ctx).ok
        assert runner.called("add-apt-repository -y ppa:ondrej/php")
        install = [c for c in runner.calls_matching("apt-get install -y") if "php8.3-fpm" in c]
        assert install and "php8.3-redis" in install[0]

    def test_runtime_purges_apache(self, ctx, runner):
        runner.set_response("dpkg-query -W -f=${Status} apache2", "install ok installed")
        php_runtime(ctx)
        assert runner.called("apt-get purge -y apache2")

    def test_runtime_ppa_failure_is_fatal(self, ctx, runner):
        runner.set_failure("add-apt-repository")
        assert php_runtime(ctx).failed

    def test_extensions_all_present(self, ctx):
        result = php_extensions(ctx)
        assert result.status == "ok"

    def test_extensions_repaired(self, ctx, runner):
        runner.set_sequence(
            ["php8.3", "-m"],
            [
                Receipt.success([], output="curl\nmbstring\nxml\nzip\ngd\nmysqli\nbcmath\nintl\n"),
                Receipt.success([], output="redis\ncurl\nmbstring\nxml\nzip\ngd\nmysqli\nbcmath\nintl\n"),
            ],
        )
        result = php_extensions(ctx)
        assert result.status == "ok"
        assert runner.called("apt-get install -y php8.3-redis")

    def test_extensions_still_missing_is_a_warning(self, ctx, runner):
        runner.set_response(["php8.3", "-m"], "curl\n")
        result = php_extensions(ctx)
        assert result.status == "warning"
        assert any("still missing" in w for w in result.warnings)

    def test_pool_ready(self, ctx, fs, monkeypatch):
        monkeypatch.setattr(fs, "is_socket", lambda path: True)
        result = php_fpm_pool(ctx)
        assert result.ok
        pool = fs.read_text("/etc/php/8.3/fpm/pool.d/acme.conf")
        assert "[acme]" in pool
        assert "listen = /run/php/php8.3-fpm-acme.sock" in pool

    def test_pool_fails_when_service_down(self, ctx, runner):
        runner.set_failure("systemctl is-active --quiet php8.3-fpm")
        result = php_fpm_pool(ctx)
        assert result.failed
        assert "not running" in result.error

    def test_pool_socket_after_reload(self, ctx, fs, monkeypatch):
        calls = []

        def is_socket(path):
            calls.append(path)
            return len(calls) > 8

        monkeypatch.setattr(fs, "is_socket", is_socket)
        assert php_fpm_pool(ctx).ok

    def test_pool_for_84(self, ctx, fs, monkeypatch):
        monkeypatch.setattr(fs, "is_socket", lambda path: True)
        _with(ctx, php_version=PhpVersion.PHP_84)
        assert php_fpm_pool(ctx).ok
        assert fs.is_file("/etc/php/8.4/fpm/pool.d/acme.conf")


# ── MariaDB ──────────────────────────────────────────────────────────


class TestMariaDB:
    def test_sql_string(self):
        assert sql_string("it's") == "'it''s'"
        assert sql_string("a\\b") == "'a\\\\b'"

    def test_provisions_schema_and_user(self, ctx, runner):
        result = mariadb(ctx)
        assert result.status == "ok"
        sql = [c[-1] for c in runner.calls_matching("mysql")]
        assert any(s.startswith("CREATE DATABASE IF NOT EXISTS `acme_db`") for s in sql)
        assert any("GRANT ALL PRIVILEGES ON `acme_db`.*" in s for s in sql)

    def test_start_failure_is_fatal(self, ctx, runner):
        runner.set_failure("systemctl start mariadb", "Job for mariadb.service failed")
        result = mariadb(ctx)
        assert result.failed
        assert "MariaDB start" in result.error
        assert not runner.calls_matching("mysql")

    def test_passwords_never_in_argv(self, ctx, runner):
        mariadb(ctx)
        for entry in runner.call_log:
            if entry["cmd"][0] != "mysql":
                continue
            argv = " ".join(entry["cmd"][:-1])
            assert ctx.config.db_root_password not in argv
        root_calls = [e for e in runner.call_log if e["cmd"][:3] == ["mysql", "-u", "root"]]
        assert root_calls
        assert all(e["env"]["MYSQL_PWD"] == ctx.config.db_root_password for e in root_calls)

    def test_grant_failure_is_fatal(self, ctx, runner, monkeypatch):
        _fail_sql(runner, monkeypatch, "GRANT", "access denied")
        result = mariadb(ctx)
        assert result.failed
        assert "grant privileges" in result.error

    def test_existing_user_is_a_warning(self, ctx, runner, monkeypatch):
        _fail_sql(runner, monkeypatch, "CREATE USER", "exists")
        result = mariadb(ctx)
        assert result.status == "warning"


# ── Composer / Node.js ───────────────────────────────────────────────


class TestTooling:
    def test_composer_self_update(self, ctx, runner):
        assert composer(ctx).status == "ok"
        entry = next(e for e in runner.call_log if e["cmd"][:2] == ["composer", "self-update"])
        assert entry["env"] == {"COMPOSER_ALLOW_SUPERUSER": "1"}

    def test_composer_fresh_install(self, ctx, runner, monkeypatch):
        original_which = runner.which
        original_run = runner.run
        installed = {"done": False}

        def which(binary):
            if binary == "composer":
                return "/usr/local/bin/composer" if installed["done"] else None
            return original_which(binary)

        def run(cmd, **kwargs):
            if cmd[:1] == ["install"]:
                installed["done"] = True
            return original_run(cmd, **kwargs)

        monkeypatch.setattr(runner, "which", which)
        monkeypatch.setattr(runner, "run", run)
        runner.set_response("curl -fsSL https://composer.github.io/installer.sig", "abc123")
        runner.set_response(["php8.3", "-r"], "abc123")
        result = composer(ctx)
        assert result.status == "ok"
        assert runner.called("install -m 0755 /tmp/composer.phar /usr/local/bin/composer")

    def test_nodejs(self, ctx, runner):
        result = nodejs(ctx)
        assert result.status == "ok"
        assert runner.called("apt-get install -y nodejs")

    def test_old_node_is_a_warning(self, ctx, runner):
        runner.set_response("node --version", "v16.20.0")
        assert nodejs(ctx).status == "warning"

    def test_missing_npm_is_fatal(self, ctx, runner):
        runner.set_available("npm", False)
        assert nodejs(ctx).failed


# ── Redis ────────────────────────────────────────────────────────────


class TestRedisConfig:
    def test_replaces_active_line(self):
        text = "bind 0.0.0.0\nport 6379\n"
        assert set_directive(text, "bind", "127.0.0.1") == "bind 127.0.0.1\nport 6379\n"

    def test_uncomments(self):
        text = "# requirepass foobared\nport 6379\n"
        assert set_directive(text, "requirepass", "s3cret") == "requirepass s3cret\nport 6379\n"

    def test_appends_and_dedupes(self):
        assert set_directive("port 6379\n", "maxmemory", "256mb") == "port 6379\nmaxmemory 256mb\n"
        text = "timeout 0\n# timeout 10\ntimeout 5\n"
        assert set_directive(text, "timeout", "300") == "timeout 300\n"

    def test_does_not_touch_prefixed_keys(self):
        text = "maxmemory-policy noeviction\n# maxmemory <bytes>\n"
        result = set_directive(text, "maxmemory", "256mb")
        assert "maxmemory-policy noeviction" in result
        assert "maxmemory 256mb" in result

    def test_save_points(self):
        text = "port 6379\n# save 3600 1\nsave 300 100\ndbfilename dump.rdb\n"
        result = set_save_points(text, ["900 1", "60 10000"])
        assert result == "port 6379\nsave 900 1\nsave 60 10000\ndbfilename dump.rdb\n"

    def test_configure_is_idempotent(self):
        once = configure_redis_text("bind 0.0.0.0\n# requirepass x\n", "Secret123")
        twice = configure_redis_text(once, "Secret123")
        assert once == twice
        assert once.count("requirepass Secret123") == 1
        assert "maxmemory-policy allkeys-lru" in once
        assert "save 900 1" in once

    def test_step(self, ctx, fs, runner):
        fs.write_text("/etc/redis/redis.conf", "bind 0.0.0.0\nport 6379\n")
        result = redis(ctx)
        assert result.status == "ok"
        assert fs.read_text("/etc/redis/redis.conf.backup") == "bind 0.0.0.0\nport 6379\n"
        conf = fs.read_text("/etc/redis/redis.conf")
        assert "requirepass Red1s!Passw0rd" in conf
        ping = next(e for e in runner.call_log if e["cmd"] == ["redis-cli", "ping"])
        assert ping["env"] == {"REDISCLI_AUTH": "Red1s!Passw0rd"}

    def test_backup_taken_once(self, ctx, fs):
        fs.write_text("/etc/redis/redis.conf", "port 6379\n")
        redis(ctx)
        redis(ctx)
        assert fs.read_text("/etc/redis/redis.conf.backup") == "port 6379\n"

    def test_no_pong_is_a_warning(self, ctx, runner):
        runner.set_response("redis-cli", "NOAUTH")
        assert redis(ctx).status == "warning"


# ── Workers, scheduler ───────────────────────────────────────────────


class TestWorkers:
    def test_queue_command(self, ctx):
        assert queue_command(ctx) == (
            "php /var/www/acme/artisan queue:work --tries=3 --timeout=90"
        )
        _with(ctx, queue_driver=QueueDriver.REDIS)
        assert queue_command(ctx) == (
            "php /var/www/acme/artisan queue:work redis --tries=3 --timeout=90"
        )

    def test_queue_program(self, ctx, fs):
        _with(ctx, worker_count=5)
        assert queue_workers(ctx).status == "ok"
        conf = fs.read_text("/etc/supervisor/conf.d/acme-queue.conf")
        assert "[program:acme-queue]" in conf
        assert "numprocs=5" in conf
        assert "user=www-data" in conf
        assert fs.is_dir("/var/www/acme/storage/logs")

    def test_permission_helper(self, ctx, fs):
        assert permission_helper(ctx).ok
        assert fs.path(PERMISSION_HELPER).stat().st_mode & 0o111
        assert "www-data" in fs.read_text(PERMISSION_HELPER)

    def test_scheduler_adds_entry(self, ctx, runner):
        runner.set_response("crontab -u www-data -l", "MAILTO=ops@example.com")
        assert scheduler(ctx).ok
        write = next(e for e in runner.call_log if e["cmd"] == ["crontab", "-u", "www-data", "-"])
        assert write["input"].startswith("MAILTO=ops@example.com\n")
        assert "cd /var/www/acme && php artisan schedule:run" in write["input"]

    def test_scheduler_is_idempotent(self, ctx, runner):
        runner.set_response(
            "crontab -u www-data -l",
            "* * * * * cd /var/www/acme && php artisan schedule:run >> /dev/null 2>&1",
        )
        assert scheduler(ctx).ok
        assert not runner.called("crontab -u www-data -")


# ── Firewall / Certbot / restart ─────────────────────────────────────


class TestFirewall:
    def test_is_idempotent(self, ctx, runner):
        assert firewall(ctx).ok
        first = [c for c in runner.calls if c[0] == "ufw"]
        runner.call_log.clear()
        assert firewall(ctx).ok
        second = [c for c in runner.calls if c[0] == "ufw"]
        assert first == second
        assert first[0] == ["ufw", "--force", "reset"]

    def test_rules(self, ctx, runner):
        firewall(ctx)
        assert runner.called("ufw limit ssh/tcp")
        for port in ("22/tcp", "80/tcp", "443/tcp"):
            assert runner.called(["ufw", "allow", port])

    def test_enables_ipv6(self, ctx, fs):
        fs.write_text("/etc/default/ufw", "IPV6=no\nDEFAULT_INPUT_POLICY=DROP\n")
        firewall(ctx)
        assert fs.read_text("/etc/default/ufw") == "IPV6=yes\nDEFAULT_INPUT_POLICY=DROP\n"

    def test_inactive_is_fatal(self, ctx, runner):
        runner.set_response("ufw status", "Status: inactive")
        assert firewall(ctx).failed


class TestCertbot:
    def test_already_installed(self, ctx):
        assert certbot(ctx).status == "skipped"

    def test_snap(self, ctx, runner):
        runner.set_available("certbot", False)
        assert certbot(ctx).ok
        assert runner.called("snap install --classic certbot")
        assert not runner.called("certbot --nginx")

    def test_apt_fallback(self, ctx, runner):
        runner.set_available("certbot", False)
        runner.set_available("snap", False)
        assert certbot(ctx).ok
        assert runner.called("apt-get install -y certbot python3-certbot-nginx")


class TestServiceRestart:
    def test_skips_missing_units(self, ctx, runner):
        runner.set_failure("systemctl cat supervisor")
        assert service_restart(ctx).ok
        assert not runner.called("systemctl restart supervisor")
        assert runner.called("systemctl restart nginx")

    def test_failed_restart_is_a_warning(self, ctx, runner):
        runner.set_failure("systemctl restart redis-server")
        runner.set_failure("systemctl start redis-server")
        result = service_restart(ctx)
        assert result.status == "warning"
        assert runner.called("redis-server -t")
