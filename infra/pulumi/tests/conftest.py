"""Pytest configuration and fixtures.

This module sets test environment variables and Pulumi mocks BEFORE any
component modules are imported, so resources register against the mock
engine instead of a real deployment.
"""

import os

# Set test environment variables before any imports that might trigger Settings
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("SECRETS_BASE_DIR", "")

import pulumi
import pytest

ACCOUNT_ID = "123456789012"
REGION = "us-east-1"


class SecretsMocks(pulumi.runtime.Mocks):
    """Mock engine returning ARNs for Secrets Manager and SSM resources."""

    def new_resource(self, args: pulumi.runtime.MockResourceArgs):
        outputs = dict(args.inputs)
        if args.typ == "aws:secretsmanager/secret:Secret":
            outputs["arn"] = (
                f"arn:aws:secretsmanager:{REGION}:{ACCOUNT_ID}:secret:{args.inputs['name']}-AbCdEf"
            )
        elif args.typ == "aws:ssm/parameter:Parameter":
            outputs["arn"] = f"arn:aws:ssm:{REGION}:{ACCOUNT_ID}:parameter{args.inputs['name']}"
        return [f"{args.name}_id", outputs]

    def call(self, args: pulumi.runtime.MockCallArgs):
        return {}


pulumi.runtime.set_mocks(SecretsMocks(), project="secret-publisher", stack="test", preview=False)


@pytest.fixture
def secret_files(tmp_path):
    """Write a structured secrets file and an AWS credentials file."""
    secrets_dir = tmp_path / "secrets"
    secrets_dir.mkdir()
    (secrets_dir / "app.yaml").write_text('db_pass: "s3cr3t"\nport: 5432\nenabled: true\n')
    (secrets_dir / "app.json").write_text('{"api_token": "tok-123", "db_pass": "json-pass"}')

    creds_dir = tmp_path / "creds"
    creds_dir.mkdir()
    (creds_dir / "aws_credentials").write_text(
        "[default]\n"
        "aws_access_key_id = AKIAEXAMPLE\n"
        "aws_secret_access_key=wJalrXUtnFEMI/K7MDENG\n"
        "\n"
        "[other]\n"
        "aws_access_key_id = AKIAOTHER\n"
    )
    return tmp_path
