"""
Built-in error message templates.
"""

import pytest

from structvalidator import DEFAULT_ERROR_MESSAGES, FailedRule, FieldValidationError, invalid_value_message
from structvalidator.messages import build_error, default_error_messages


class TestDefaultMessages:

    @pytest.mark.parametrize("rule, expected", [
        (FailedRule('oneof', 'proto', 'ftp', 'tcp http'), "ftp is invalid. Valid values are tcp http."),
        (FailedRule('tcp4_addr', 'listen', 'localhost:80'), "localhost:80 is not a valid tcp address"),
        (FailedRule('hostname', 'hostname', '-bad-'), "-bad- is not a valid hostname"),
        (FailedRule('required_with', 'Cert', '', 'Key'), "cert is required with key"),
        (FailedRule('required_without', 'Host', '', 'Addr'), "host is required when addr is not set"),
        (FailedRule('required', 'Proto', ''), "proto is required."),
    ])
    def test_override_templates(self, rule, expected):
        error = DEFAULT_ERROR_MESSAGES[rule.tag](rule)

        assert isinstance(error, FieldValidationError)
        assert str(error) == expected
        assert error.tag == rule.tag

    def test_default_template(self):
        error = invalid_value_message(FailedRule('min', 'Workers', 0, '1'))

        assert str(error) == "0 is an invalid workers"

    def test_registry_copies_are_independent(self):
        registry = default_error_messages()
        registry['oneof'] = lambda rule: "changed"

        assert DEFAULT_ERROR_MESSAGES['oneof'] is not registry['oneof']
        assert set(default_error_messages()) == set(DEFAULT_ERROR_MESSAGES)


class TestBuildError:

    def test_exception_passed_through(self):
        error = ValueError("custom")

        assert build_error(lambda rule: error, FailedRule('x', 'f', 1)) is error

    def test_string_wrapped(self):
        error = build_error(lambda rule: f"{rule.field} bad", FailedRule('x', 'f', 1))

        assert isinstance(error, FieldValidationError)
        assert str(error) == "f bad"
        assert error.field == 'f'
