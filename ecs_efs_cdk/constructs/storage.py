"""Storage construct for EFS volumes mounted into ECS tasks"""
from typing import Dict, List

from aws_cdk import (
    aws_ec2 as ec2,
    aws_ecs as ecs,
    aws_efs as efs,
    aws_iam as iam,
    CfnOutput,
    Stack
)
from constructs import Construct

from ecs_efs_cdk.config import EfsMountConfig
from ecs_efs_cdk.logging import LOG


class EfsStorageConstruct(Construct):
    """
    Construct for the EFS storage of one service.

    Imports or creates the file system and its security group, creates one access point
    per mount mapping, grants the task mount-only access (write and root access are opt-in)
    and registers one task volume per mapping, keyed by its source volume name.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        vpc: ec2.IVpc,
        service_name: str,
        config: EfsMountConfig,
        task_definition: ecs.TaskDefinition
    ) -> None:
        """
        Initialize the EFS storage construct.

        Args:
            scope: Parent construct
            construct_id: Unique identifier for this construct
            vpc: VPC of the file system
            service_name: Name of the service owning the mounts
            config: EFS mount configuration settings
            task_definition: Task definition receiving the volumes and IAM statements
        """
        super().__init__(scope, construct_id)

        self._service_name = service_name

        if config.efs_security_group_id:
            self._security_group = ec2.SecurityGroup.from_security_group_id(
                self, "SecurityGroup",
                config.efs_security_group_id,
                allow_all_outbound=False
            )
        else:
            self._security_group = ec2.SecurityGroup(
                self, "SecurityGroup",
                vpc=vpc,
                allow_all_outbound=False,
                description="Security group used by EFS"
            )

        if config.efs_id:
            LOG.info("Service %s: importing EFS %s", service_name, config.efs_id)
            self._file_system = efs.FileSystem.from_file_system_attributes(
                self, "FileSystem",
                file_system_id=config.efs_id,
                security_group=self._security_group
            )
        else:
            LOG.info("Service %s: creating EFS", service_name)
            self._file_system = efs.FileSystem(
                self, "FileSystem",
                vpc=vpc,
                security_group=self._security_group,
                encrypted=True,
                lifecycle_policy=efs.LifecyclePolicy.AFTER_14_DAYS,
                performance_mode=efs.PerformanceMode.GENERAL_PURPOSE,
                throughput_mode=efs.ThroughputMode.BURSTING
            )

        actions = ["elasticfilesystem:ClientMount"]
        if config.allow_write:
            actions.append("elasticfilesystem:ClientWrite")
        if config.allow_root_access:
            actions.append("elasticfilesystem:ClientRootAccess")

        self._access_points: Dict[str, efs.AccessPoint] = {}
        for mapping in config.mount_mappings:
            access_point = efs.AccessPoint(
                self, f"AccessPoint-{mapping.source_volume}",
                file_system=self._file_system,
                path=mapping.efs_path
            )
            access_point.node.add_dependency(self._file_system)
            self._access_points[mapping.source_volume] = access_point

            mount_policy = iam.PolicyStatement(
                actions=actions,
                resources=[
                    access_point.access_point_arn,
                    self._file_system.file_system_arn
                ]
            )
            task_definition.add_to_task_role_policy(mount_policy)
            task_definition.add_to_execution_role_policy(mount_policy)

            task_definition.add_volume(
                name=mapping.source_volume,
                efs_volume_configuration=ecs.EfsVolumeConfiguration(
                    file_system_id=self._file_system.file_system_id,
                    transit_encryption="ENABLED",
                    authorization_config=ecs.AuthorizationConfig(
                        access_point_id=access_point.access_point_id
                    )
                )
            )
            LOG.debug(
                "Service %s: volume %s -> %s",
                service_name, mapping.source_volume, mapping.efs_path
            )

    def allow_access_from(self, service: ecs.BaseService) -> None:
        """
        Open the NFS port to the service and publish the file system identifiers.

        Args:
            service: ECS service mounting the file system
        """
        self._file_system.connections.allow_default_port_from(service)

        stack = Stack.of(self)
        CfnOutput(
            stack, f"ecsEfsId-{self._service_name}",
            value=self._file_system.file_system_id,
            description=f"ECS EFS Id for {self._service_name}"
        )
        CfnOutput(
            stack, f"ecsEfsArn-{self._service_name}",
            value=self._file_system.file_system_arn,
            description=f"ECS EFS ARN for {self._service_name}"
        )

    @property
    def file_system(self) -> efs.IFileSystem:
        """Get the mounted file system"""
        return self._file_system

    @property
    def access_points(self) -> Dict[str, efs.AccessPoint]:
        """Get the access points, keyed by source volume name"""
        return self._access_points

    @property
    def volume_names(self) -> List[str]:
        """Get the task volume names registered by this construct"""
        return list(self._access_points)
