"""Unit tests for the secrets component, run against Pulumi mocks."""

import re

import pulumi
import pytest

from components.errors import (
    AmbiguousLocationError,
    NamingConflictError,
    SecretFileNotFoundError,
    SecretKeyNotFoundError,
)
from components.secrets import (
    SecretsComponent,
    check_resource_names,
    generate_suffix,
    parameter_store_name,
    secret_store_name,
    sink_resource_names,
)

EXISTING_ARN = "arn:aws:secretsmanager:us-east-1:123456789012:secret:api_key-AbCdEf"


class TestNaming:
    """Tests for suffix generation and resource naming."""

    def test_suffix_is_short_lowercase_alphanumeric(self):
        suffix = generate_suffix()
        assert re.fullmatch(r"[a-z0-9]{6}", suffix)

    def test_suffix_length(self):
        assert len(generate_suffix(10)) == 10

    def test_secret_store_name(self):
        assert secret_store_name("myapp-", "db_pass", "ab12cd") == "myapp-db_pass-ab12cd"

    def test_parameter_store_name(self):
        assert parameter_store_name("myapp-", "db_pass", "ab12cd") == "/myapp-ab12cd/db_pass"

    def test_names_without_prefix(self):
        assert secret_store_name("", "db_pass", "ab12cd") == "db_pass-ab12cd"
        assert parameter_store_name("", "db_pass", "ab12cd") == "/ab12cd/db_pass"

    def test_sink_resource_names_follow_sink(self):
        names = ["a", "b"]
        assert sink_resource_names(names, False, "p-", "s") == {"a": "p-a-s", "b": "p-b-s"}
        assert sink_resource_names(names, True, "p-", "s") == {"a": "/p-s/a", "b": "/p-s/b"}


class TestCheckResourceNames:
    """Tests for check_resource_names()."""

    def test_distinct_names_pass(self):
        check_resource_names({"a": "a-s", "b": "b-s"}, {"c": EXISTING_ARN})

    def test_duplicate_generated_names_conflict(self):
        with pytest.raises(NamingConflictError, match="both map to"):
            check_resource_names({"a": "same", "b": "same"}, {})

    def test_generated_name_referenced_by_existing_secret_conflicts(self):
        existing = {"old": "arn:aws:secretsmanager:us-east-1:123456789012:secret:a-s-XyZ123"}
        with pytest.raises(NamingConflictError, match="already references"):
            check_resource_names({"a": "a-s"}, existing)

    def test_generated_name_referenced_by_existing_parameter_conflicts(self):
        existing = {"old": "arn:aws:ssm:us-east-1:123456789012:parameter/s/a"}
        with pytest.raises(NamingConflictError):
            check_resource_names({"a": "/s/a"}, existing)


class TestSecretsComponentValidation:
    """Failures abort before any resource is declared."""

    def test_unclassifiable_location(self, secret_files):
        with pytest.raises(AmbiguousLocationError):
            SecretsComponent(
                "bad",
                secrets_map={"x": "not-a-location"},
                suffix="abc123",
                base_dir=secret_files,
            )

    def test_missing_file(self, tmp_path):
        with pytest.raises(SecretFileNotFoundError):
            SecretsComponent(
                "missing",
                secrets_map={"db_pass": "secrets/app.yaml:db_pass"},
                suffix="abc123",
                base_dir=tmp_path,
            )

    def test_missing_key(self, secret_files):
        with pytest.raises(SecretKeyNotFoundError):
            SecretsComponent(
                "nokey",
                secrets_map={"nope": "secrets/app.yaml"},
                suffix="abc123",
                base_dir=secret_files,
            )


@pulumi.runtime.test
def test_structured_secret_published_to_secrets_manager(secret_files):
    """Test the db_pass example against Secrets Manager."""
    component = SecretsComponent(
        "sm",
        secrets_map={"db_pass": "secrets/app.yaml:db_pass"},
        suffix="abc123",
        name_prefix="myapp-",
        base_dir=secret_files,
    )

    assert component.to_publish == {"db_pass": "s3cr3t"}
    assert set(component.secrets) == {"db_pass"}
    assert set(component.secret_versions) == {"db_pass"}
    assert component.parameters == {}

    def check(args):
        identifiers, secret_name, secret_string = args
        assert identifiers == {
            "db_pass": (
                "arn:aws:secretsmanager:us-east-1:123456789012:secret:myapp-db_pass-abc123-AbCdEf"
            )
        }
        assert secret_name == "myapp-db_pass-abc123"
        assert secret_string == "s3cr3t"

    return pulumi.Output.all(
        component.identifiers,
        component.secrets["db_pass"].name,
        component.secret_versions["db_pass"].secret_string,
    ).apply(check)


@pulumi.runtime.test
def test_secret_options_are_passed_through(secret_files):
    """Test that KMS key, recovery window and tags reach the secret."""
    component = SecretsComponent(
        "opts",
        secrets_map={"db_pass": "secrets/app.yaml"},
        suffix="abc123",
        kms_key_id="alias/app",
        tags={"Project": "myapp"},
        recovery_window_in_days=7,
        base_dir=secret_files,
    )
    secret = component.secrets["db_pass"]

    def check(args):
        kms_key_id, recovery_window, tags = args
        assert kms_key_id == "alias/app"
        assert recovery_window == 7
        assert tags == {"Project": "myapp", "Name": "db_pass"}

    return pulumi.Output.all(secret.kms_key_id, secret.recovery_window_in_days, secret.tags).apply(
        check
    )


@pulumi.runtime.test
def test_existing_reference_passes_through(secret_files):
    """Test the api_key example: existing ARNs come out unchanged."""
    component = SecretsComponent(
        "passthrough",
        secrets_map={"api_key": EXISTING_ARN},
        suffix="abc123",
        base_dir=secret_files,
    )

    assert component.to_publish == {}
    assert component.secrets == {}
    assert component.parameters == {}

    def check(identifiers):
        assert identifiers == {"api_key": EXISTING_ARN}

    return component.identifiers.apply(check)


@pulumi.runtime.test
def test_parameter_store_sink(secret_files):
    """Test that the parameter store flag selects SSM for every new secret."""
    component = SecretsComponent(
        "ssm",
        secrets_map={
            "db_pass": "secrets/app.yaml:db_pass",
            "aws_id": "creds/aws_credentials:aws_access_key_id",
        },
        suffix="abc123",
        use_parameter_store=True,
        name_prefix="myapp-",
        tags={"Environment": "test"},
        base_dir=secret_files,
    )

    assert set(component.parameters) == {"db_pass", "aws_id"}
    assert component.secrets == {}
    assert component.secret_versions == {}
    parameter = component.parameters["aws_id"]

    def check(args):
        identifiers, parameter_type, value, tags = args
        assert identifiers == {
            "db_pass": "/myapp-abc123/db_pass",
            "aws_id": "/myapp-abc123/aws_id",
        }
        assert parameter_type == "SecureString"
        assert value == "AKIAEXAMPLE"
        assert tags == {"Environment": "test", "Name": "aws_id"}

    return pulumi.Output.all(
        component.identifiers, parameter.type, parameter.value, parameter.tags
    ).apply(check)


@pulumi.runtime.test
def test_mixed_map_has_one_identifier_per_input(secret_files):
    """Test that the output covers every input key exactly once, in order."""
    secrets_map = {
        "api_key": EXISTING_ARN,
        "db_pass": "secrets/app.yaml:db_pass",
        "aws_id": "creds/aws_credentials:aws_access_key_id",
        "aws_secret": "creds/aws_credentials:aws_secret_access_key",
    }
    component = SecretsComponent(
        "mixed", secrets_map=secrets_map, suffix="abc123", base_dir=secret_files
    )

    assert component.to_publish == {
        "db_pass": "s3cr3t",
        "aws_id": "AKIAEXAMPLE",
        "aws_secret": "wJalrXUtnFEMI/K7MDENG",
    }
    assert set(component.secrets) == {"db_pass", "aws_id", "aws_secret"}

    def check(identifiers):
        assert list(identifiers) == list(secrets_map)
        assert identifiers["api_key"] == EXISTING_ARN
        for secret_name in ("db_pass", "aws_id", "aws_secret"):
            assert f":secret:{secret_name}-abc123-" in identifiers[secret_name]

    return component.identifiers.apply(check)


def test_each_run_creates_new_suffixed_resources(secret_files):
    """Test that repeated runs are not idempotent by name."""
    secrets_map = {"db_pass": "secrets/app.yaml:db_pass"}
    published = {}

    def run_program(suffix):
        @pulumi.runtime.test
        def program():
            component = SecretsComponent(
                "run", secrets_map=secrets_map, suffix=suffix, base_dir=secret_files
            )
            return component.identifiers.apply(
                lambda identifiers: published.update({suffix: identifiers["db_pass"]})
            )

        program()

    run_program("aaa111")
    run_program("bbb222")

    assert published["aaa111"].endswith(":secret:db_pass-aaa111-AbCdEf")
    assert published["bbb222"].endswith(":secret:db_pass-bbb222-AbCdEf")
    assert published["aaa111"] != published["bbb222"]


@pulumi.runtime.test
def test_empty_map():
    component = SecretsComponent("empty", secrets_map={}, suffix="abc123")

    def check(identifiers):
        assert identifiers == {}

    return component.identifiers.apply(check)


@pulumi.runtime.test
def test_unquoted_values_are_published_as_written(tmp_path):
    """Test that octal-, boolean- and date-looking values are not converted."""
    (tmp_path / "app.yaml").write_text("pin: 0123\nflag: yes\nsince: 2024-01-01\n")
    component = SecretsComponent(
        "verbatim",
        secrets_map={"pin": "app.yaml", "flag": "app.yaml", "since": "app.yaml"},
        suffix="abc123",
        base_dir=tmp_path,
    )

    assert component.to_publish == {"pin": "0123", "flag": "yes", "since": "2024-01-01"}

    def check(secret_string):
        assert secret_string == "0123"

    return component.secret_versions["pin"].secret_string.apply(check)
