#!/usr/bin/env python3
import os
import aws_cdk as cdk
from config import load_config
from inference.inference_stack import InferenceStack
from tagging import stack_tags

_ACCOUNT = os.getenv("CDK_DEFAULT_ACCOUNT")
_REGION = os.getenv("CDK_DEFAULT_REGION")

app = cdk.App()

config = load_config(
    context={
        key: app.node.try_get_context(key)
        for key in ("prefix", "stage", "install_packages")
    }
)

InferenceStack(
    app,
    config.stack_id,
    prefix=config.prefix,
    stage=config.stage,
    install_packages=config.install_packages,
    env=cdk.Environment(account=_ACCOUNT, region=_REGION),
    tags=stack_tags(config.prefix, config.stage),
)

app.synth()
