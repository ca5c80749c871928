#!/usr/bin/env python3
"""CDK App entry point for the ECS/EFS infrastructure."""

import json
import logging
import os

import aws_cdk as cdk

from ecs_efs_cdk.config import EcsEfsConfig
from ecs_efs_cdk.ecs_efs_stack import EcsEfsStack
from ecs_efs_cdk.logging import setup_logging


app = cdk.App()

setup_logging(logging.DEBUG if app.node.try_get_context("debug") else logging.INFO)

# Override the default deployment with `cdk synth -c ecsEfsConfig='{...}'` or cdk.json
config_data = app.node.try_get_context("ecsEfsConfig")
if isinstance(config_data, str):
    config_data = json.loads(config_data)
config = EcsEfsConfig.from_dict(config_data) if config_data else EcsEfsConfig.default()

env = cdk.Environment(
    account=os.environ.get("CDK_DEFAULT_ACCOUNT"),
    region=os.environ.get("CDK_DEFAULT_REGION"),
)

EcsEfsStack(app, "EcsEfsStack", config=config, env=env)

app.synth()
