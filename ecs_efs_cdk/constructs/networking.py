"""Networking construct for VPC and security groups"""
from typing import Optional

from aws_cdk import aws_ec2 as ec2
from constructs import Construct

from ecs_efs_cdk.config import VpcConfig
from ecs_efs_cdk.logging import LOG


class NetworkingConstruct(Construct):
    """
    Construct for the VPC and the security groups shared by all services.

    Looks up an existing VPC by name, or creates one with public and private subnets
    when no name is configured. Creates the load balancer, application and database
    security groups, with the application reachable from the load balancer only and the
    database reachable from the application only.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: VpcConfig
    ) -> None:
        """
        Initialize the networking construct.

        Args:
            scope: Parent construct
            construct_id: Unique identifier for this construct
            config: VPC configuration settings
        """
        super().__init__(scope, construct_id)

        if config.vpc_name:
            LOG.info("Looking up VPC %s", config.vpc_name)
            self._vpc = ec2.Vpc.from_lookup(self, "Vpc", vpc_name=config.vpc_name)
        else:
            self._vpc = ec2.Vpc(
                self, "Vpc",
                max_azs=config.max_azs,
                nat_gateways=config.nat_gateways,
                subnet_configuration=[
                    ec2.SubnetConfiguration(
                        name="Public",
                        subnet_type=ec2.SubnetType.PUBLIC,
                        cidr_mask=24
                    ),
                    ec2.SubnetConfiguration(
                        name="Private",
                        subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS,
                        cidr_mask=24
                    )
                ]
            )

        self._lb_security_group = ec2.SecurityGroup(self, "LBSG", vpc=self._vpc)
        self._app_security_group = ec2.SecurityGroup(self, "AppSG", vpc=self._vpc)
        self._app_security_group.add_ingress_rule(
            ec2.Peer.security_group_id(self._lb_security_group.security_group_id),
            ec2.Port.tcp(config.app_port)
        )

        self._db_security_group = None
        if config.database_port is not None:
            self._db_security_group = ec2.SecurityGroup(self, "DBSG", vpc=self._vpc)
            self._db_security_group.add_ingress_rule(
                ec2.Peer.security_group_id(self._app_security_group.security_group_id),
                ec2.Port.tcp(config.database_port)
            )

    @property
    def vpc(self) -> ec2.IVpc:
        """Get the VPC resource"""
        return self._vpc

    @property
    def lb_security_group(self) -> ec2.SecurityGroup:
        """Get the security group of the load balancers"""
        return self._lb_security_group

    @property
    def app_security_group(self) -> ec2.SecurityGroup:
        """Get the security group of the ECS tasks"""
        return self._app_security_group

    @property
    def db_security_group(self) -> Optional[ec2.SecurityGroup]:
        """Get the database security group, if enabled"""
        return self._db_security_group
