"""
Custom exceptions for ecs-efs-cdk
"""


class EcsEfsBaseException(Exception):
    """
    Top class for ecs-efs-cdk exceptions
    """

    def __init__(self, msg, *args):
        super().__init__(msg, *args)


class ConfigValidationError(EcsEfsBaseException):
    """
    Exception when the deployment configuration is incomplete or inconsistent.
    Always raised before any construct is created.
    """


class DuplicateVolumeNameError(ConfigValidationError):
    """
    Exception when two EFS mount mappings of the same service use the same source volume name
    """


class MissingScalingPolicyError(ConfigValidationError):
    """
    Exception when an autoscaling configuration has neither a CPU nor a request count target
    """


class UnknownSharedResourceError(EcsEfsBaseException, KeyError):
    """
    Exception when looking up a shared resource that was never registered
    """
