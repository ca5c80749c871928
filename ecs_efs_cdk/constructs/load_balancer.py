"""Application Load Balancer shared by several services"""
from aws_cdk import (
    aws_ec2 as ec2,
    aws_elasticloadbalancingv2 as elbv2,
    CfnOutput,
    Stack
)
from constructs import Construct

from ecs_efs_cdk.config import ListenerConfig


class SharedLoadBalancerConstruct(Construct):
    """
    Construct for an internet-facing Application Load Balancer and its HTTP listener.

    Services register their own target groups on the listener. The load balancer
    DNS name is published once as a stack output.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        alb_name: str,
        vpc: ec2.IVpc,
        security_group: ec2.ISecurityGroup,
        config: ListenerConfig
    ) -> None:
        """
        Initialize the shared load balancer construct.

        Args:
            scope: Parent construct
            construct_id: Unique identifier for this construct
            alb_name: Shared name services use to reference this load balancer
            vpc: VPC of the load balancer
            security_group: Security group of the load balancer
            config: Listener settings
        """
        super().__init__(scope, construct_id)

        self._load_balancer = elbv2.ApplicationLoadBalancer(
            self, "LoadBalancer",
            vpc=vpc,
            internet_facing=True,
            security_group=security_group
        )

        self._listener = self._load_balancer.add_listener(
            "Listener",
            port=config.port,
            open=config.open
        )

        CfnOutput(
            Stack.of(self), f"ecsLbDnsName-{alb_name}",
            value=self._load_balancer.load_balancer_dns_name,
            description="ECS Load Balancer DNS Name"
        )

    @property
    def load_balancer(self) -> elbv2.ApplicationLoadBalancer:
        """Get the Application Load Balancer"""
        return self._load_balancer

    @property
    def listener(self) -> elbv2.ApplicationListener:
        """Get the HTTP listener services attach their targets to"""
        return self._listener

    @property
    def load_balancer_dns_name(self) -> str:
        """Get the load balancer DNS name"""
        return self._load_balancer.load_balancer_dns_name
