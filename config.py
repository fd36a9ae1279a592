import os
from typing import Mapping, NamedTuple, Optional

STAGES = ("dev", "staging", "prod")
DEFAULT_PREFIX = "lambda-efs-ml"
DEFAULT_STAGE = "dev"


class StackConfig(NamedTuple):
    prefix: str
    stage: str
    install_packages: Optional[str] = None

    @property
    def stack_id(self) -> str:
        return f"{self.prefix}-{self.stage}-LambdaEfsMl"


def load_config(
    environ: Mapping[str, str] = os.environ,
    context: Optional[Mapping[str, str]] = None,
) -> StackConfig:
    """Resolve the stack inputs.

    CDK context values (`cdk deploy -c stage=prod`) win over the environment
    variables PREFIX, STAGE and INSTALL_PACKAGES.
    """
    context = context or {}

    prefix = context.get("prefix") or environ.get("PREFIX") or DEFAULT_PREFIX
    stage = context.get("stage") or environ.get("STAGE") or DEFAULT_STAGE
    install_packages = (
        context.get("install_packages") or environ.get("INSTALL_PACKAGES") or None
    )

    prefix = prefix.strip()
    if not prefix:
        raise Exception("Invalid prefix: must not be empty")
    if stage not in STAGES:
        raise Exception(f"Invalid stage: {stage} (expected one of {', '.join(STAGES)})")

    return StackConfig(prefix=prefix, stage=stage, install_packages=install_packages)
