from typing import List, Optional

from aws_cdk import Stack
from constructs import Construct

from ecs_efs_cdk.config import EcsEfsConfig
from ecs_efs_cdk.constructs.ec2_service import Ec2ServiceConstruct
from ecs_efs_cdk.constructs.ecs_cluster import EcsClusterConstruct
from ecs_efs_cdk.constructs.load_balancer import SharedLoadBalancerConstruct
from ecs_efs_cdk.constructs.networking import NetworkingConstruct
from ecs_efs_cdk.logging import LOG
from ecs_efs_cdk.registry import SharedResourceRegistry


class EcsEfsStack(Stack):
    """
    ECS cluster on EC2 capacity running services with EFS volumes behind shared load balancers.

    Services are assembled strictly in configuration order: the first service naming a
    load balancer creates it, later services register additional target groups on it.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: Optional[EcsEfsConfig] = None,
        **kwargs
    ) -> None:
        config = config or EcsEfsConfig.default()
        # Nothing, the stack included, is constructed from an invalid configuration
        config.validate()

        super().__init__(scope, construct_id, **kwargs)

        self._config = config

        networking = NetworkingConstruct(self, "Networking", config=config.vpc)
        self._networking = networking

        self._cluster = EcsClusterConstruct(
            self, "EcsCluster",
            vpc=networking.vpc,
            config=config.capacity
        )

        self._load_balancers: SharedResourceRegistry[SharedLoadBalancerConstruct] = \
            SharedResourceRegistry("Load balancer")

        self._services: List[Ec2ServiceConstruct] = []
        for service_config in config.services:
            LOG.info("Assembling service %s", service_config.name)
            self._services.append(Ec2ServiceConstruct(
                self, f"Service-{service_config.name}",
                config=service_config,
                cluster=self._cluster.cluster,
                vpc=networking.vpc,
                app_security_group=networking.app_security_group,
                lb_security_group=networking.lb_security_group,
                load_balancers=self._load_balancers
            ))

    @property
    def networking(self) -> NetworkingConstruct:
        return self._networking

    @property
    def cluster(self) -> EcsClusterConstruct:
        return self._cluster

    @property
    def load_balancers(self) -> SharedResourceRegistry[SharedLoadBalancerConstruct]:
        """Load balancers created for this stack, keyed by their shared name"""
        return self._load_balancers

    @property
    def services(self) -> List[Ec2ServiceConstruct]:
        return self._services
