"""
Tests for the configuration wizard — interactive answers, defaults,
re-prompting and the confirmation gate.
"""

import pytest

from slemp.core.models.config import HIDDEN, PhpVersion, QueueDriver
from slemp.core.services.wizard import (
    WizardCancelled,
    ask_db_password,
    ask_yes_no,
    build_noninteractive_config,
    confirm_configuration,
    render_summary,
    run_wizard,
)


def fake_gen(length):
    return "G" * length


class TestYesNo:
    def test_enter_takes_default(self, make_prompter):
        assert ask_yes_no(make_prompter([""]), "Go? (Y/n)", default=True) is True
        assert ask_yes_no(make_prompter([""]), "Go? (y/N)", default=False) is False

    def test_reprompts_on_garbage(self, make_prompter):
        prompter = make_prompter(["maybe", "yes"])
        assert ask_yes_no(prompter, "Go? (y/N)", default=False) is True
        assert len(prompter.asked) == 2

    def test_first_letter_decides(self, make_prompter):
        assert ask_yes_no(make_prompter(["Nope"]), "Go? (Y/n)", default=True) is False


class TestDbPassword:
    def test_generated(self, make_prompter):
        assert ask_db_password(make_prompter(["1"]), fake_gen) == "G" * 16

    def test_weak_then_strong(self, make_prompter):
        prompter = make_prompter(["2"], secrets=["abc", "abcdefgh", "Abcdefgh1234!"])
        assert ask_db_password(prompter, fake_gen) == "Abcdefgh1234!"

    def test_medium_requires_confirmation(self, make_prompter):
        prompter = make_prompter(["2", "n", "y"], secrets=["abcdefg1", "abcdefg2"])
        assert ask_db_password(prompter, fake_gen) == "abcdefg2"
        assert prompter.asked.count("Continue with this password? (y/N)") == 2

    def test_invalid_option_reprompts(self, make_prompter):
        prompter = make_prompter(["3", "1"])
        assert ask_db_password(prompter, fake_gen) == "G" * 16

    def test_rejects_whitespace(self, make_prompter):
        prompter = make_prompter(["2"], secrets=["Abcd efgh 1234!", "Abcdefgh1234!"])
        assert ask_db_password(prompter, fake_gen) == "Abcdefgh1234!"
        assert prompter.secrets == []


class TestInteractiveWizard:
    def test_shop_with_all_defaults(self, make_prompter, settings):
        prompter = make_prompter(["shop"])
        record = run_wizard(prompter, settings, password_gen=fake_gen)

        assert record.project_name == "shop"
        assert record.domain == "shop.com"
        assert record.ssl_email == "admin@shop.com"
        assert record.db_name == "shop_db"
        assert record.db_user == "shop_db_usr"
        assert record.db_password == "G" * 16
        assert record.db_root_password == "G" * 20
        assert record.redis_password == "G" * 16
        assert record.php_version == PhpVersion.PHP_83
        assert record.queue_driver == QueueDriver.DATABASE
        assert record.worker_count == 3
        assert record.interactive is True

    def test_invalid_answers_reprompt(self, make_prompter, settings):
        prompter = make_prompter(["x", "blog", "not a domain", "", "", "", "", "1"])
        record = run_wizard(prompter, settings, password_gen=fake_gen)
        assert record.project_name == "blog"
        assert record.domain == "blog.com"
        assert prompter.asked.count("Enter project name") == 2
        assert prompter.asked.count("Enter domain name") == 2

    def test_flag_defaults_preselect_menus(self, make_prompter, settings):
        record = run_wizard(
            make_prompter(),
            settings,
            php_default=PhpVersion.PHP_84,
            queue_default=QueueDriver.REDIS,
            password_gen=fake_gen,
        )
        assert record.project_name == "laravel-project"
        assert record.db_name == "laravel_project_db"
        assert record.php_version == PhpVersion.PHP_84
        assert record.queue_driver == QueueDriver.REDIS

    def test_manual_root_and_redis_passwords(self, make_prompter, settings):
        answers = ["acme", "", "", "", "", "1", "n", "n"]
        prompter = make_prompter(answers, secrets=["short", "RootPass123", "RedisPass1"])
        record = run_wizard(prompter, settings, password_gen=fake_gen)
        assert record.db_root_password == "RootPass123"
        assert record.redis_password == "RedisPass1"

    def test_manual_secret_rejects_whitespace(self, make_prompter, settings):
        answers = ["acme", "", "", "", "", "1", "y", "n"]
        prompter = make_prompter(answers, secrets=["Redis Pass 1", "RedisPass1"])
        record = run_wizard(prompter, settings, password_gen=fake_gen)
        assert record.redis_password == "RedisPass1"
        assert record.db_root_password == "G" * 20

    def test_worker_count_bounds(self, make_prompter, settings):
        answers = ["acme", "", "", "", "", "", "", "", "2", "2", "0", "21", "8"]
        record = run_wizard(make_prompter(answers), settings, password_gen=fake_gen)
        assert record.worker_count == 8
        assert record.php_version == PhpVersion.PHP_84
        assert record.queue_driver == QueueDriver.REDIS

    @pytest.mark.parametrize("bad", ["²", "03", "３"])
    def test_worker_count_reprompts_on_odd_digits(self, make_prompter, settings, bad):
        answers = ["acme", "", "", "", "", "", "", "", "", "", bad, "4"]
        record = run_wizard(make_prompter(answers), settings, password_gen=fake_gen)
        assert record.worker_count == 4


class TestNonInteractive:
    def test_defaults(self, settings):
        record = build_noninteractive_config(settings, password_gen=fake_gen)
        assert record.project_name == "laravel-project"
        assert record.domain == "laravel-project.local"
        assert record.ssl_email == "admin@laravel-project.local"
        assert record.db_name == "laravel_project_db"
        assert record.db_user == "laravel_project_db_usr"
        assert record.php_version == PhpVersion.PHP_83
        assert record.queue_driver == QueueDriver.DATABASE
        assert record.worker_count == 3
        assert record.interactive is False
        assert record.install_ssl is False

    def test_flags(self, settings):
        record = build_noninteractive_config(
            settings, php_version=PhpVersion.PHP_84, queue_driver=QueueDriver.REDIS
        )
        assert record.php_version == PhpVersion.PHP_84
        assert record.queue_driver == QueueDriver.REDIS
        assert len(record.db_password) == 16
        assert len(record.db_root_password) == 20
        assert len(record.redis_password) == 16


class TestConfirmation:
    def test_summary_hides_secrets(self, record, settings):
        text = render_summary(record, settings)
        assert "CONFIGURATION SUMMARY" in text
        assert record.db_password not in text
        assert HIDDEN in text

    def test_confirm_writes_recovery_file(self, make_prompter, record, settings, fs):
        confirmed = confirm_configuration(record, make_prompter([""]), settings, fs)
        assert confirmed.install_ssl is False
        assert fs.is_file(settings.recovery_file)

    def test_decline_raises(self, make_prompter, record, settings, fs):
        with pytest.raises(WizardCancelled):
            confirm_configuration(record, make_prompter(["n"]), settings, fs)
        # The recovery file is written before the question.
        assert fs.is_file(settings.recovery_file)

    def test_noninteractive_does_not_ask(self, make_prompter, settings, fs):
        record = build_noninteractive_config(settings, password_gen=fake_gen)
        prompter = make_prompter()
        confirm_configuration(record, prompter, settings, fs)
        assert prompter.asked == []
