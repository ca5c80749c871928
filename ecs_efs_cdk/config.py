"""Configuration management for ECS on EC2 with EFS infrastructure"""
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Union

from ecs_efs_cdk.exceptions import (
    ConfigValidationError,
    DuplicateVolumeNameError,
    MissingScalingPolicyError
)
from ecs_efs_cdk.logging import LOG

MACHINE_IMAGES = ("amazon-linux-2", "amazon-linux-2023")
PLACEMENT_STRATEGIES = ("spread-instances", "spread-azs", "pack-cpu", "pack-memory", "random")
LOG_RETENTION_DAYS = (1, 3, 5, 7, 14, 30, 60, 90, 180, 365)

DEFAULT_MAX_HEALTHY_PERCENT = 200
DEFAULT_MIN_HEALTHY_PERCENT = 50


def _require(value: Any, field_name: str, owner: str) -> None:
    if value is None or value == "":
        raise ConfigValidationError(f"{owner}: {field_name} is required")


@dataclass
class VpcConfig:
    """VPC and security group configuration"""
    vpc_name: Optional[str] = None
    max_azs: int = 2
    nat_gateways: int = 1
    app_port: int = 80
    database_port: Optional[int] = 3306


@dataclass
class ClusterCapacityConfig:
    """EC2 capacity backing the ECS cluster"""
    instance_type: str = "m6a.xlarge"
    machine_image: str = "amazon-linux-2"
    desired_capacity: int = 2
    min_capacity: int = 1
    max_capacity: int = 2
    cooldown_minutes: int = 5
    enable_container_insights: bool = True

    def __post_init__(self):
        if self.machine_image not in MACHINE_IMAGES:
            raise ConfigValidationError(
                f"Unsupported machine image {self.machine_image}. Valid values: {', '.join(MACHINE_IMAGES)}"
            )
        if not self.min_capacity <= self.desired_capacity <= self.max_capacity:
            raise ConfigValidationError(
                f"Cluster capacity must satisfy min <= desired <= max, got "
                f"{self.min_capacity}/{self.desired_capacity}/{self.max_capacity}"
            )


@dataclass
class EfsMountMapping:
    """One EFS directory exposed to the container through an access point"""
    source_volume: str
    efs_path: str
    container_path: str
    read_only: bool = False

    def __post_init__(self):
        for field_name in ("source_volume", "efs_path", "container_path"):
            _require(getattr(self, field_name), field_name, "EFS mount mapping")


@dataclass
class EfsMountConfig:
    """EFS file system and mount mappings for a service container"""
    mount_mappings: List[EfsMountMapping]
    efs_id: Optional[str] = None
    efs_security_group_id: Optional[str] = None
    allow_write: bool = False
    allow_root_access: bool = False

    def __post_init__(self):
        if not self.mount_mappings:
            raise ConfigValidationError("EFS mount requires at least one mount mapping")
        seen = set()
        for mapping in self.mount_mappings:
            if mapping.source_volume in seen:
                raise DuplicateVolumeNameError(
                    f"Volume {mapping.source_volume} is mapped more than once"
                )
            seen.add(mapping.source_volume)


@dataclass
class ContainerConfig:
    """Container definition options"""
    image: str
    cpu: int = 256
    memory_limit_mib: int = 512
    container_ports: List[int] = None
    essential: bool = True
    environment_variables: Dict[str, str] = None
    log_retention_days: int = 7
    efs_mount: Optional[EfsMountConfig] = None

    def __post_init__(self):
        _require(self.image, "image", "Container")
        if self.log_retention_days not in LOG_RETENTION_DAYS:
            raise ConfigValidationError(
                f"Unsupported log retention {self.log_retention_days} days. "
                f"Valid values: {', '.join(str(days) for days in LOG_RETENTION_DAYS)}"
            )
        if self.container_ports is None:
            self.container_ports = [80]
        if not self.container_ports:
            raise ConfigValidationError("Container requires at least one port mapping")
        if self.environment_variables is None:
            self.environment_variables = {}


@dataclass
class HealthCheckConfig:
    """Target group health check configuration"""
    path: str = "/"
    healthy_http_codes: str = "200"
    interval_seconds: int = 30
    timeout_seconds: int = 5
    healthy_threshold_count: int = 2
    unhealthy_threshold_count: Optional[int] = None

    def __post_init__(self):
        if self.timeout_seconds >= self.interval_seconds:
            raise ConfigValidationError(
                "Health check timeout must be lower than the health check interval"
            )


@dataclass
class ListenerConfig:
    """Load balancer listener configuration, owned by the first service referencing the load balancer"""
    port: int = 80
    open: bool = True


@dataclass
class TargetConfig:
    """Per-service target group registration on a shared listener"""
    port: int = 80
    deregistration_delay_seconds: Optional[int] = None
    health_check: HealthCheckConfig = None
    priority: Optional[int] = None
    path_patterns: List[str] = None
    query_strings: Dict[str, str] = None
    host_headers: List[str] = None
    target_group_name: Optional[str] = None

    def __post_init__(self):
        if self.health_check is None:
            self.health_check = HealthCheckConfig()
        if self.path_patterns is None:
            self.path_patterns = []
        if self.query_strings is None:
            self.query_strings = {}
        if self.host_headers is None:
            self.host_headers = []
        if self.has_conditions and self.priority is None:
            raise ConfigValidationError("Routing conditions require a rule priority")
        if self.priority is not None and not self.has_conditions:
            raise ConfigValidationError("A rule priority requires at least one routing condition")

    @property
    def has_conditions(self) -> bool:
        return bool(self.path_patterns or self.query_strings or self.host_headers)


@dataclass
class AlbConfig:
    """Shared Application Load Balancer reference"""
    alb_name: str
    listener: ListenerConfig = None
    target: TargetConfig = None

    def __post_init__(self):
        _require(self.alb_name, "alb_name", "Load balancer")
        if "/" in self.alb_name:
            raise ConfigValidationError(f"Load balancer name {self.alb_name} must not contain '/'")
        if self.listener is None:
            self.listener = ListenerConfig()
        if self.target is None:
            self.target = TargetConfig()


@dataclass
class CpuScalingPolicy:
    """Scale the task count to keep average CPU utilization at a target"""
    target_utilization_percent: int
    scale_in_cooldown_seconds: Optional[int] = None
    scale_out_cooldown_seconds: Optional[int] = None


@dataclass
class RequestCountScalingPolicy:
    """Scale the task count to keep ALB requests per target at a target"""
    requests_per_target: int
    scale_in_cooldown_seconds: Optional[int] = None
    scale_out_cooldown_seconds: Optional[int] = None


ScalingPolicy = Union[CpuScalingPolicy, RequestCountScalingPolicy]


@dataclass
class AutoscaleConfig:
    """Task count bounds and the single scaling trigger attached to a service"""
    min_capacity: int
    max_capacity: int
    policy: ScalingPolicy = None

    def __post_init__(self):
        if not isinstance(self.policy, (CpuScalingPolicy, RequestCountScalingPolicy)):
            raise MissingScalingPolicyError(
                "Autoscaling requires either a CPU utilization or a request count policy"
            )
        if self.min_capacity > self.max_capacity:
            raise ConfigValidationError(
                f"Autoscaling min_capacity {self.min_capacity} exceeds max_capacity {self.max_capacity}"
            )

    @classmethod
    def from_options(
        cls,
        min_capacity: int,
        max_capacity: int,
        cpu: Optional[CpuScalingPolicy] = None,
        request_count: Optional[RequestCountScalingPolicy] = None
    ) -> "AutoscaleConfig":
        """
        Build from loosely shaped options where both policies are optional.

        CPU utilization takes precedence when both are given.
        """
        if cpu and request_count:
            LOG.warning(
                "Both CPU and request count scaling are set, only CPU utilization scaling is applied"
            )
        return cls(min_capacity=min_capacity, max_capacity=max_capacity, policy=cpu or request_count)


@dataclass
class ServiceConfig:
    """ECS service on EC2 configuration"""
    name: str
    alb: AlbConfig
    container: ContainerConfig
    desired_count: int = 1
    placement_strategies: List[str] = None
    max_healthy_percent: Optional[int] = None
    min_healthy_percent: Optional[int] = None
    autoscaling: Optional[AutoscaleConfig] = None
    container_name: Optional[str] = None

    def __post_init__(self):
        _require(self.name, "name", "Service")
        _require(self.alb, "alb", f"Service {self.name}")
        _require(self.container, "container", f"Service {self.name}")
        if self.placement_strategies is None:
            self.placement_strategies = []
        for strategy in self.placement_strategies:
            if strategy not in PLACEMENT_STRATEGIES:
                raise ConfigValidationError(
                    f"Service {self.name}: unsupported placement strategy {strategy}. "
                    f"Valid values: {', '.join(PLACEMENT_STRATEGIES)}"
                )
        if self.max_healthy_percent is None:
            self.max_healthy_percent = DEFAULT_MAX_HEALTHY_PERCENT
        if self.min_healthy_percent is None:
            self.min_healthy_percent = DEFAULT_MIN_HEALTHY_PERCENT
        if self.container_name is None:
            self.container_name = f"cntr-{self.name}"
        if self.alb.target.target_group_name is None:
            # The caller's AlbConfig and TargetConfig stay untouched
            self.alb = replace(
                self.alb,
                target=replace(self.alb.target, target_group_name=f"tg-{self.name}")
            )


@dataclass
class EcsEfsConfig:
    """Main configuration for the ECS/EFS infrastructure"""
    vpc: VpcConfig
    capacity: ClusterCapacityConfig
    services: List[ServiceConfig]

    def validate(self) -> None:
        """Check invariants spanning several services. Raises ConfigValidationError."""
        if not self.services:
            raise ConfigValidationError("At least one service must be defined")
        names = set()
        target_groups = set()
        for service in self.services:
            if service.name in names:
                raise ConfigValidationError(f"Service {service.name} is defined more than once")
            names.add(service.name)
            tg_name = service.alb.target.target_group_name
            if tg_name in target_groups:
                raise ConfigValidationError(f"Target group name {tg_name} is used more than once")
            target_groups.add(tg_name)

        targets_by_alb: Dict[str, List[ServiceConfig]] = {}
        for service in self.services:
            targets_by_alb.setdefault(service.alb.alb_name, []).append(service)
        for alb_name, services in targets_by_alb.items():
            self._validate_listener_targets(alb_name, services)

    @staticmethod
    def _validate_listener_targets(alb_name: str, services: List[ServiceConfig]) -> None:
        """
        A listener forwards unmatched traffic to exactly one target group and every other
        target group needs a rule with a priority unique on that listener.
        """
        defaults = [svc.name for svc in services if not svc.alb.target.has_conditions]
        if not defaults:
            raise ConfigValidationError(
                f"Load balancer {alb_name}: one service must have no routing conditions "
                f"to receive unmatched traffic"
            )
        if len(defaults) > 1:
            raise ConfigValidationError(
                f"Load balancer {alb_name}: services {', '.join(defaults)} all have no routing "
                f"conditions, only one can receive unmatched traffic"
            )
        priorities = {}
        for service in services:
            priority = service.alb.target.priority
            if priority is None:
                continue
            if priority in priorities:
                raise ConfigValidationError(
                    f"Load balancer {alb_name}: services {priorities[priority]} and {service.name} "
                    f"both use rule priority {priority}"
                )
            priorities[priority] = service.name

    @classmethod
    def default(cls) -> "EcsEfsConfig":
        """Create default configuration: two services sharing one load balancer and one EFS"""

        app1 = ServiceConfig(
            name="app1",
            desired_count=2,
            placement_strategies=["spread-instances"],
            autoscaling=AutoscaleConfig(
                min_capacity=1,
                max_capacity=5,
                policy=RequestCountScalingPolicy(
                    requests_per_target=50,
                    scale_in_cooldown_seconds=60,
                    scale_out_cooldown_seconds=60
                )
            ),
            alb=AlbConfig(
                alb_name="shared-alb",
                target=TargetConfig(
                    deregistration_delay_seconds=5,
                    health_check=HealthCheckConfig(healthy_http_codes="200,303")
                )
            ),
            container=ContainerConfig(
                image="amazon/amazon-ecs-sample",
                efs_mount=EfsMountConfig(
                    efs_id="fs-03b2cba49c1ad64c0",
                    mount_mappings=[
                        # The access point path must exist on the file system before deployment
                        EfsMountMapping(
                            source_volume="app",
                            efs_path="/mpi/2023-05-01/app1",
                            container_path="/usr/app"
                        )
                    ]
                )
            )
        )

        app2 = ServiceConfig(
            name="app2",
            desired_count=1,
            alb=AlbConfig(
                alb_name="shared-alb",
                target=TargetConfig(
                    deregistration_delay_seconds=5,
                    health_check=HealthCheckConfig(healthy_http_codes="200"),
                    priority=100,
                    query_strings={"q": "app2"}
                )
            ),
            container=ContainerConfig(
                image="amazon/amazon-ecs-sample",
                efs_mount=EfsMountConfig(
                    efs_id="fs-03b2cba49c1ad64c0",
                    mount_mappings=[
                        EfsMountMapping(
                            source_volume="app",
                            efs_path="/mpi/2023-05-01/app2",
                            container_path="/usr/app"
                        )
                    ]
                )
            )
        )

        return cls(
            vpc=VpcConfig(vpc_name="AriefhInfraStack/dev-vpc"),
            capacity=ClusterCapacityConfig(),
            services=[app1, app2]
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EcsEfsConfig":
        """
        Build the configuration from plain data, e.g. CDK context or a JSON document.

        Keys mirror the dataclass field names. Autoscaling uses ``min``, ``max`` and the
        optional ``cpu`` / ``request_count`` blocks.
        """
        if not isinstance(data, Mapping):
            raise ConfigValidationError(
                f"Configuration must be a mapping, got {type(data).__name__}"
            )
        try:
            return cls(
                vpc=VpcConfig(**data.get("vpc", {})),
                capacity=ClusterCapacityConfig(**data.get("capacity", {})),
                services=[_service_from_dict(svc) for svc in data["services"]]
            )
        except KeyError as error:
            raise ConfigValidationError(f"Missing mandatory field {error}") from error
        except TypeError as error:
            raise ConfigValidationError(f"Invalid configuration: {error}") from error


def _service_from_dict(data: Dict[str, Any]) -> ServiceConfig:
    alb = data["alb"]
    target = dict(alb.get("target", {}))
    if "health_check" in target:
        target["health_check"] = HealthCheckConfig(**target["health_check"])

    container = dict(data["container"])
    if "efs_mount" in container:
        efs_mount = dict(container["efs_mount"])
        efs_mount["mount_mappings"] = [
            EfsMountMapping(**mapping) for mapping in efs_mount["mount_mappings"]
        ]
        container["efs_mount"] = EfsMountConfig(**efs_mount)

    autoscaling = None
    if data.get("autoscaling"):
        scaling = data["autoscaling"]
        cpu = scaling.get("cpu")
        request_count = scaling.get("request_count")
        autoscaling = AutoscaleConfig.from_options(
            min_capacity=scaling["min"],
            max_capacity=scaling["max"],
            cpu=CpuScalingPolicy(**cpu) if cpu else None,
            request_count=RequestCountScalingPolicy(**request_count) if request_count else None
        )

    options = {
        key: data[key]
        for key in ("desired_count", "placement_strategies", "max_healthy_percent",
                    "min_healthy_percent", "container_name")
        if key in data
    }
    return ServiceConfig(
        name=data["name"],
        alb=AlbConfig(
            alb_name=alb["alb_name"],
            listener=ListenerConfig(**alb.get("listener", {})),
            target=TargetConfig(**target)
        ),
        container=ContainerConfig(**container),
        autoscaling=autoscaling,
        **options
    )
