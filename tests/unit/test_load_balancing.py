"""Tests for shared Application Load Balancers and per-service target groups"""
import pytest
import aws_cdk.assertions as assertions
from tests.test_constants import ResourceType, InfraConfig
from tests.test_helpers import (
    assert_resource_count,
    assert_has_property,
    assert_health_check_config,
    find_target_group_id
)


class TestSharedLoadBalancers:
    """Test that load balancers are created once per shared name"""

    def test_one_load_balancer_per_name(self, template):
        """Test that app1 and app2 share one load balancer and app3 gets its own"""
        assert_resource_count(template, ResourceType.ALB, InfraConfig.EXPECTED_LOAD_BALANCERS)

    def test_one_listener_per_load_balancer(self, template):
        """Test that the shared load balancer has a single listener"""
        assert_resource_count(template, ResourceType.LISTENER, InfraConfig.EXPECTED_LISTENERS)

    def test_load_balancers_are_internet_facing(self, template):
        """Test that load balancers are internet-facing"""
        assert_has_property(template, ResourceType.ALB, {
            "Scheme": "internet-facing"
        })

    def test_listener_port(self, template):
        """Test that listeners accept HTTP on port 80"""
        assert_has_property(template, ResourceType.LISTENER, {
            "Port": 80,
            "Protocol": "HTTP"
        })

    def test_services_share_the_registry_handle(self, cdk_stack):
        """Test that services referencing the same name hold the same load balancer"""
        app1, app2, app3 = cdk_stack.services
        assert app1.load_balancer is app2.load_balancer
        assert app3.load_balancer is not app1.load_balancer
        assert cdk_stack.load_balancers.names() == [InfraConfig.SHARED_ALB, InfraConfig.INTERNAL_ALB]


class TestTargetGroups:
    """Test per-service target groups on the shared listener"""

    def test_one_target_group_per_service(self, template):
        """Test that every service registers its own target group"""
        assert_resource_count(template, ResourceType.TARGET_GROUP, InfraConfig.EXPECTED_TARGET_GROUPS)
        for service_name in InfraConfig.SERVICE_NAMES:
            find_target_group_id(template, f"tg-{service_name}")

    def test_target_groups_use_ip_targets(self, template):
        """Test that awsvpc tasks register as IP targets"""
        for target_group in template.find_resources(ResourceType.TARGET_GROUP).values():
            assert target_group["Properties"]["TargetType"] == "ip"

    def test_first_service_health_check(self, template):
        """Test that app1's health check accepts 200 and 303"""
        assert_health_check_config(
            template,
            "tg-app1",
            path="/",
            codes=InfraConfig.APP1_HEALTHY_CODES,
            interval=30,
            timeout=5,
            healthy_threshold=2
        )

    def test_second_service_health_check_is_its_own(self, template):
        """Test that app2 keeps its own health check on its own target group"""
        assert_health_check_config(
            template,
            "tg-app2",
            path="/",
            codes=InfraConfig.APP2_HEALTHY_CODES,
            interval=30,
            timeout=5,
            healthy_threshold=2
        )

    def test_deregistration_delay(self, template):
        """Test that the configured deregistration delay is applied"""
        assert_has_property(template, ResourceType.TARGET_GROUP, {
            "Name": "tg-app1",
            "TargetGroupAttributes": assertions.Match.array_with([
                {"Key": "deregistration_delay.timeout_seconds", "Value": InfraConfig.DEREGISTRATION_DELAY}
            ])
        })


class TestRouting:
    """Test default and conditional routing on the shared listener"""

    def test_first_service_is_default_action(self, template):
        """Test that the first service of the shared load balancer receives unmatched traffic"""
        tg_app1 = find_target_group_id(template, "tg-app1")
        assert_has_property(template, ResourceType.LISTENER, {
            "DefaultActions": [{"Type": "forward", "TargetGroupArn": {"Ref": tg_app1}}]
        })

    def test_second_service_is_routed_conditionally(self, template):
        """Test that app2 is reached through a priority 100 query string rule"""
        tg_app2 = find_target_group_id(template, "tg-app2")
        assert_resource_count(template, ResourceType.LISTENER_RULE, InfraConfig.EXPECTED_LISTENER_RULES)
        assert_has_property(template, ResourceType.LISTENER_RULE, {
            "Priority": InfraConfig.APP2_PRIORITY,
            "Conditions": [{
                "Field": "query-string",
                "QueryStringConfig": {
                    "Values": [{"Key": InfraConfig.APP2_QUERY_KEY, "Value": InfraConfig.APP2_QUERY_VALUE}]
                }
            }],
            "Actions": [{"Type": "forward", "TargetGroupArn": {"Ref": tg_app2}}]
        })

    def test_both_services_on_the_same_listener(self, template):
        """Test that app2's rule is attached to the listener forwarding to app1"""
        tg_app1 = find_target_group_id(template, "tg-app1")
        listeners = template.find_resources(ResourceType.LISTENER, {
            "Properties": {
                "DefaultActions": [{"Type": "forward", "TargetGroupArn": {"Ref": tg_app1}}]
            }
        })
        assert len(listeners) == 1
        listener_id = next(iter(listeners))
        assert_has_property(template, ResourceType.LISTENER_RULE, {
            "ListenerArn": {"Ref": listener_id}
        })
