"""Tests for VPC and networking configuration"""
import pytest
from tests.test_constants import ResourceType, InfraConfig
from tests.test_helpers import assert_resource_count, assert_resource_count_at_least, assert_ingress_port


class TestVPCConfiguration:
    """Test VPC configuration"""

    def test_vpc_is_created(self, template):
        """Test that exactly one VPC is created when no VPC name is configured"""
        assert_resource_count(template, ResourceType.VPC, 1)

    def test_vpc_has_correct_number_of_subnets(self, template):
        """Test that VPC uses exactly 2 availability zones (2 public + 2 private subnets)"""
        assert_resource_count(template, ResourceType.SUBNET, InfraConfig.EXPECTED_SUBNETS)

    def test_vpc_has_nat_gateway(self, template):
        """Test that VPC has exactly 1 NAT gateway"""
        assert_resource_count(template, ResourceType.NAT_GATEWAY, InfraConfig.EXPECTED_NAT_GATEWAYS)

    def test_vpc_has_internet_gateway(self, template):
        """Test that VPC has an internet gateway"""
        assert_resource_count(template, ResourceType.INTERNET_GATEWAY, 1)


class TestSecurityGroups:
    """Test security group configuration"""

    def test_security_groups_created(self, template):
        """Test that security groups are created for load balancers, tasks, database, EFS and instances"""
        assert_resource_count_at_least(
            template,
            ResourceType.SECURITY_GROUP,
            InfraConfig.MIN_EXPECTED_SECURITY_GROUPS
        )

    def test_app_reachable_from_load_balancer(self, template):
        """Test that the application security group accepts the app port from the load balancer group"""
        assert_ingress_port(template, InfraConfig.APP_PORT, from_security_group=True)

    def test_database_reachable_from_app(self, template):
        """Test that the database security group accepts the database port"""
        assert_ingress_port(template, InfraConfig.DATABASE_PORT, from_security_group=True)

    def test_efs_reachable_over_nfs(self, template):
        """Test that file systems accept NFS from the services mounting them"""
        assert_ingress_port(template, InfraConfig.NFS_PORT, from_security_group=True)
