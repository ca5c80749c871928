"""ECS cluster construct backed by EC2 capacity"""
from aws_cdk import (
    aws_autoscaling as autoscaling,
    aws_ecs as ecs,
    aws_ec2 as ec2,
    Duration
)
from constructs import Construct

from ecs_efs_cdk.config import ClusterCapacityConfig

MACHINE_IMAGE_FACTORIES = {
    "amazon-linux-2": ecs.EcsOptimizedImage.amazon_linux2,
    "amazon-linux-2023": ecs.EcsOptimizedImage.amazon_linux2023,
}


class EcsClusterConstruct(Construct):
    """
    Construct for creating an ECS cluster on EC2 instances.

    Creates the cluster with optional Container Insights, an Auto Scaling group of
    ECS-optimized instances, and registers the group as the cluster capacity provider.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        vpc: ec2.IVpc,
        config: ClusterCapacityConfig
    ) -> None:
        """
        Initialize the ECS cluster construct.

        Args:
            scope: Parent construct
            construct_id: Unique identifier for this construct
            vpc: VPC where the cluster and its instances will be created
            config: Cluster capacity configuration settings
        """
        super().__init__(scope, construct_id)

        self._cluster = ecs.Cluster(
            self, "Cluster",
            vpc=vpc,
            container_insights=config.enable_container_insights
        )

        self._auto_scaling_group = autoscaling.AutoScalingGroup(
            self, "Asg",
            vpc=vpc,
            instance_type=ec2.InstanceType(config.instance_type),
            machine_image=MACHINE_IMAGE_FACTORIES[config.machine_image](),
            desired_capacity=config.desired_capacity,
            min_capacity=config.min_capacity,
            max_capacity=config.max_capacity,
            cooldown=Duration.minutes(config.cooldown_minutes)
        )

        self._capacity_provider = ecs.AsgCapacityProvider(
            self, "AsgCapacityProvider",
            auto_scaling_group=self._auto_scaling_group
        )
        self._cluster.add_asg_capacity_provider(self._capacity_provider)

    @property
    def cluster(self) -> ecs.Cluster:
        """Get the ECS cluster"""
        return self._cluster

    @property
    def auto_scaling_group(self) -> autoscaling.AutoScalingGroup:
        """Get the Auto Scaling group providing cluster capacity"""
        return self._auto_scaling_group

    @property
    def capacity_provider(self) -> ecs.AsgCapacityProvider:
        """Get the ASG capacity provider"""
        return self._capacity_provider
