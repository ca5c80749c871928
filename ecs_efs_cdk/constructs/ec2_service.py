"""EC2 service construct registered behind a shared Application Load Balancer"""
from typing import List, Optional

from aws_cdk import (
    aws_ec2 as ec2,
    aws_ecs as ecs,
    aws_elasticloadbalancingv2 as elbv2,
    aws_logs as logs,
    Duration,
    RemovalPolicy,
    Stack
)
from constructs import Construct

from ecs_efs_cdk.config import (
    CpuScalingPolicy,
    RequestCountScalingPolicy,
    ServiceConfig,
    TargetConfig
)
from ecs_efs_cdk.constructs.load_balancer import SharedLoadBalancerConstruct
from ecs_efs_cdk.constructs.storage import EfsStorageConstruct
from ecs_efs_cdk.logging import LOG
from ecs_efs_cdk.registry import SharedResourceRegistry

LOG_RETENTION = {
    1: logs.RetentionDays.ONE_DAY,
    3: logs.RetentionDays.THREE_DAYS,
    5: logs.RetentionDays.FIVE_DAYS,
    7: logs.RetentionDays.ONE_WEEK,
    14: logs.RetentionDays.TWO_WEEKS,
    30: logs.RetentionDays.ONE_MONTH,
    60: logs.RetentionDays.TWO_MONTHS,
    90: logs.RetentionDays.THREE_MONTHS,
    180: logs.RetentionDays.SIX_MONTHS,
    365: logs.RetentionDays.ONE_YEAR,
}


def placement_strategy(name: str) -> ecs.PlacementStrategy:
    """Map a configured placement strategy name to its ECS placement strategy"""
    if name == "spread-instances":
        return ecs.PlacementStrategy.spread_across_instances()
    if name == "spread-azs":
        return ecs.PlacementStrategy.spread_across(ecs.BuiltInAttributes.AVAILABILITY_ZONE)
    if name == "pack-cpu":
        return ecs.PlacementStrategy.packed_by_cpu()
    if name == "pack-memory":
        return ecs.PlacementStrategy.packed_by_memory()
    if name == "random":
        return ecs.PlacementStrategy.randomly()
    raise ValueError(f"Unknown placement strategy {name}")


def listener_conditions(config: TargetConfig) -> List[elbv2.ListenerCondition]:
    """Routing conditions of a target, in path, host, query string order"""
    conditions = []
    if config.path_patterns:
        conditions.append(elbv2.ListenerCondition.path_patterns(config.path_patterns))
    if config.host_headers:
        conditions.append(elbv2.ListenerCondition.host_headers(config.host_headers))
    if config.query_strings:
        conditions.append(elbv2.ListenerCondition.query_strings([
            elbv2.QueryStringCondition(key=key, value=value)
            for key, value in config.query_strings.items()
        ]))
    return conditions


def _seconds(value: Optional[int]) -> Optional[Duration]:
    return Duration.seconds(value) if value is not None else None


class Ec2ServiceConstruct(Construct):
    """
    Construct for an ECS service on EC2 capacity.

    Creates a dedicated task definition, the optional EFS volumes, the container and its
    log group, and the service itself. The service registers its own target group on the
    shared load balancer named in its configuration, creating that load balancer when it
    is the first to reference it, and attaches at most one scaling policy.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: ServiceConfig,
        cluster: ecs.ICluster,
        vpc: ec2.IVpc,
        app_security_group: ec2.ISecurityGroup,
        lb_security_group: ec2.ISecurityGroup,
        load_balancers: SharedResourceRegistry[SharedLoadBalancerConstruct]
    ) -> None:
        """
        Initialize the EC2 service construct.

        Args:
            scope: Parent construct
            construct_id: Unique identifier for this construct
            config: Service configuration settings
            cluster: ECS cluster to deploy the service to
            vpc: VPC of the service and its storage
            app_security_group: Security group of the tasks
            lb_security_group: Security group given to load balancers created for this service
            load_balancers: Registry of the load balancers shared between services
        """
        super().__init__(scope, construct_id)

        self._config = config
        name = config.name
        container_config = config.container

        self._task_definition = ecs.Ec2TaskDefinition(
            self, "TaskDef",
            network_mode=ecs.NetworkMode.AWS_VPC
        )

        self._storage = None
        if container_config.efs_mount:
            self._storage = EfsStorageConstruct(
                self, "Storage",
                vpc=vpc,
                service_name=name,
                config=container_config.efs_mount,
                task_definition=self._task_definition
            )

        log_group = logs.LogGroup(
            self, "LogGroup",
            retention=LOG_RETENTION[container_config.log_retention_days],
            removal_policy=RemovalPolicy.DESTROY
        )

        self._container = self._task_definition.add_container(
            config.container_name,
            image=ecs.ContainerImage.from_registry(container_config.image),
            cpu=container_config.cpu,
            memory_limit_mib=container_config.memory_limit_mib,
            essential=container_config.essential,
            environment=container_config.environment_variables,
            port_mappings=[
                ecs.PortMapping(container_port=port, protocol=ecs.Protocol.TCP)
                for port in container_config.container_ports
            ],
            logging=ecs.LogDrivers.aws_logs(
                log_group=log_group,
                stream_prefix=name
            )
        )

        if container_config.efs_mount:
            self._container.add_mount_points(*[
                ecs.MountPoint(
                    container_path=mapping.container_path,
                    source_volume=mapping.source_volume,
                    read_only=mapping.read_only
                )
                for mapping in container_config.efs_mount.mount_mappings
            ])

        self._service = ecs.Ec2Service(
            self, "Service",
            cluster=cluster,
            task_definition=self._task_definition,
            assign_public_ip=False,
            vpc_subnets=ec2.SubnetSelection(
                subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS
            ),
            security_groups=[app_security_group],
            desired_count=config.desired_count,
            placement_strategies=[
                placement_strategy(strategy) for strategy in config.placement_strategies
            ],
            max_healthy_percent=config.max_healthy_percent,
            min_healthy_percent=config.min_healthy_percent
        )

        alb_config = config.alb
        stack = Stack.of(self)
        self._load_balancer = load_balancers.get_or_create(
            alb_config.alb_name,
            lambda: SharedLoadBalancerConstruct(
                stack, f"Alb-{alb_config.alb_name}",
                alb_name=alb_config.alb_name,
                vpc=vpc,
                security_group=lb_security_group,
                config=alb_config.listener
            ),
            settings=alb_config.listener
        )

        target_config = alb_config.target
        health_check = target_config.health_check
        conditions = listener_conditions(target_config)
        self._target_group = self._load_balancer.listener.add_targets(
            target_config.target_group_name,
            port=target_config.port,
            target_group_name=target_config.target_group_name,
            targets=[
                self._service.load_balancer_target(
                    container_name=config.container_name,
                    container_port=container_config.container_ports[0]
                )
            ],
            deregistration_delay=_seconds(target_config.deregistration_delay_seconds),
            health_check=elbv2.HealthCheck(
                path=health_check.path,
                healthy_http_codes=health_check.healthy_http_codes,
                interval=Duration.seconds(health_check.interval_seconds),
                timeout=Duration.seconds(health_check.timeout_seconds),
                healthy_threshold_count=health_check.healthy_threshold_count,
                unhealthy_threshold_count=health_check.unhealthy_threshold_count
            ),
            priority=target_config.priority,
            conditions=conditions or None
        )
        LOG.info(
            "Service %s: registered target group %s on load balancer %s",
            name, target_config.target_group_name, alb_config.alb_name
        )

        self._scaling = None
        if config.autoscaling:
            self._scaling = self._add_scaling()

        if self._storage:
            self._storage.allow_access_from(self._service)

    def _add_scaling(self) -> ecs.ScalableTaskCount:
        config = self._config
        scaling = self._service.auto_scale_task_count(
            min_capacity=config.autoscaling.min_capacity,
            max_capacity=config.autoscaling.max_capacity
        )
        policy = config.autoscaling.policy
        if isinstance(policy, CpuScalingPolicy):
            LOG.info("Service %s: CPU utilization scaling at %s%%", config.name, policy.target_utilization_percent)
            scaling.scale_on_cpu_utilization(
                f"cpu-scaling-{config.name}",
                target_utilization_percent=policy.target_utilization_percent,
                scale_in_cooldown=_seconds(policy.scale_in_cooldown_seconds),
                scale_out_cooldown=_seconds(policy.scale_out_cooldown_seconds)
            )
        elif isinstance(policy, RequestCountScalingPolicy):
            LOG.info("Service %s: request count scaling at %s per target", config.name, policy.requests_per_target)
            scaling.scale_on_request_count(
                f"req-count-scaling-{config.name}",
                requests_per_target=policy.requests_per_target,
                target_group=self._target_group,
                scale_in_cooldown=_seconds(policy.scale_in_cooldown_seconds),
                scale_out_cooldown=_seconds(policy.scale_out_cooldown_seconds)
            )
        return scaling

    @property
    def service(self) -> ecs.Ec2Service:
        """Get the ECS service"""
        return self._service

    @property
    def task_definition(self) -> ecs.Ec2TaskDefinition:
        """Get the task definition"""
        return self._task_definition

    @property
    def container(self) -> ecs.ContainerDefinition:
        """Get the container definition"""
        return self._container

    @property
    def target_group(self) -> elbv2.ApplicationTargetGroup:
        """Get the target group of this service"""
        return self._target_group

    @property
    def load_balancer(self) -> SharedLoadBalancerConstruct:
        """Get the shared load balancer this service is registered on"""
        return self._load_balancer

    @property
    def storage(self) -> Optional[EfsStorageConstruct]:
        """Get the EFS storage, if the container mounts any"""
        return self._storage

    @property
    def scaling(self) -> Optional[ecs.ScalableTaskCount]:
        """Get the task count scaling, if autoscaling is configured"""
        return self._scaling
