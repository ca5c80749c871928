"""Pytest configuration and shared fixtures for CDK tests"""
import pytest
import aws_cdk as core
import aws_cdk.assertions as assertions
from ecs_efs_cdk.ecs_efs_stack import EcsEfsStack
from tests.test_helpers import build_test_config


@pytest.fixture(scope="module")
def cdk_app():
    """Create a CDK app for testing (module-scoped for performance)"""
    return core.App()


@pytest.fixture(scope="module")
def cdk_stack(cdk_app):
    """Create the EcsEfsStack for testing (module-scoped for performance)"""
    return EcsEfsStack(cdk_app, "test-ecs-efs", config=build_test_config())


@pytest.fixture(scope="module")
def template(cdk_stack):
    """Generate CloudFormation template from the stack (module-scoped for performance)"""
    return assertions.Template.from_stack(cdk_stack)
