import pytest
from config import DEFAULT_PREFIX, StackConfig, load_config


def test_defaults():
    config = load_config(environ={})

    assert config == StackConfig(prefix=DEFAULT_PREFIX, stage="dev", install_packages=None)
    assert config.stack_id == "lambda-efs-ml-dev-LambdaEfsMl"


def test_environment():
    config = load_config(
        environ={"PREFIX": "acme", "STAGE": "prod", "INSTALL_PACKAGES": "tensorflow-cpu"}
    )

    assert config == StackConfig("acme", "prod", "tensorflow-cpu")


def test_context_wins_over_environment():
    config = load_config(
        environ={"PREFIX": "acme", "STAGE": "prod"},
        context={"stage": "staging", "prefix": None},
    )

    assert config.prefix == "acme"
    assert config.stage == "staging"


def test_invalid_stage():
    with pytest.raises(Exception, match="Invalid stage"):
        load_config(environ={"STAGE": "qa"})


def test_blank_prefix():
    with pytest.raises(Exception, match="Invalid prefix"):
        load_config(environ={"PREFIX": "   "})
