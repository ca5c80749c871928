"""Constants for CDK infrastructure tests"""

# CloudFormation Resource Types
class ResourceType:
    """AWS CloudFormation resource type identifiers"""
    VPC = "AWS::EC2::VPC"
    SUBNET = "AWS::EC2::Subnet"
    NAT_GATEWAY = "AWS::EC2::NatGateway"
    INTERNET_GATEWAY = "AWS::EC2::InternetGateway"
    SECURITY_GROUP = "AWS::EC2::SecurityGroup"
    SECURITY_GROUP_INGRESS = "AWS::EC2::SecurityGroupIngress"
    LAUNCH_TEMPLATE = "AWS::EC2::LaunchTemplate"
    AUTOSCALING_GROUP = "AWS::AutoScaling::AutoScalingGroup"

    ECS_CLUSTER = "AWS::ECS::Cluster"
    ECS_CAPACITY_PROVIDER = "AWS::ECS::CapacityProvider"
    ECS_CLUSTER_CAPACITY_PROVIDERS = "AWS::ECS::ClusterCapacityProviderAssociations"
    ECS_TASK_DEFINITION = "AWS::ECS::TaskDefinition"
    ECS_SERVICE = "AWS::ECS::Service"

    EFS_FILE_SYSTEM = "AWS::EFS::FileSystem"
    EFS_ACCESS_POINT = "AWS::EFS::AccessPoint"
    EFS_MOUNT_TARGET = "AWS::EFS::MountTarget"

    IAM_ROLE = "AWS::IAM::Role"
    IAM_POLICY = "AWS::IAM::Policy"

    ALB = "AWS::ElasticLoadBalancingV2::LoadBalancer"
    LISTENER = "AWS::ElasticLoadBalancingV2::Listener"
    LISTENER_RULE = "AWS::ElasticLoadBalancingV2::ListenerRule"
    TARGET_GROUP = "AWS::ElasticLoadBalancingV2::TargetGroup"

    SCALABLE_TARGET = "AWS::ApplicationAutoScaling::ScalableTarget"
    SCALING_POLICY = "AWS::ApplicationAutoScaling::ScalingPolicy"

    LOG_GROUP = "AWS::Logs::LogGroup"


# Infrastructure Configuration Constants
class InfraConfig:
    """Expected infrastructure configuration values for the test deployment"""
    # VPC
    EXPECTED_SUBNETS = 4  # 2 public + 2 private
    EXPECTED_NAT_GATEWAYS = 1
    APP_PORT = 80
    DATABASE_PORT = 3306
    NFS_PORT = 2049
    MIN_EXPECTED_SECURITY_GROUPS = 5  # LB, app, database, EFS, instances

    # Cluster capacity
    INSTANCE_TYPE = "t3.medium"
    MIN_CAPACITY = "1"
    MAX_CAPACITY = "3"
    DESIRED_CAPACITY = "2"

    # Services
    SERVICE_NAMES = ("app1", "app2", "app3")
    EXPECTED_ECS_SERVICES = 3
    EXPECTED_TASK_DEFINITIONS = 3
    NETWORK_MODE = "awsvpc"
    CONTAINER_IMAGE = "amazon/amazon-ecs-sample"
    CONTAINER_CPU = 256
    CONTAINER_MEMORY = 512
    CONTAINER_PORT = 80
    DEFAULT_MAX_HEALTHY_PERCENT = 200
    DEFAULT_MIN_HEALTHY_PERCENT = 50
    APP3_MAX_HEALTHY_PERCENT = 150
    APP3_MIN_HEALTHY_PERCENT = 100

    # Load balancers
    SHARED_ALB = "shared-alb"
    INTERNAL_ALB = "internal-alb"
    EXPECTED_LOAD_BALANCERS = 2
    EXPECTED_LISTENERS = 2
    EXPECTED_TARGET_GROUPS = 3
    EXPECTED_LISTENER_RULES = 1
    APP1_HEALTHY_CODES = "200,303"
    APP2_HEALTHY_CODES = "200"
    APP2_PRIORITY = 100
    APP2_QUERY_KEY = "q"
    APP2_QUERY_VALUE = "app2"
    DEREGISTRATION_DELAY = "5"

    # EFS
    EXPECTED_FILE_SYSTEMS = 1  # app1 creates one, app2 imports one
    EXPECTED_ACCESS_POINTS = 3  # app1: app + cache, app2: app
    IMPORTED_EFS_ID = "fs-0123456789abcdef0"
    APP1_EFS_PATH = "/data/app1"
    APP1_CACHE_PATH = "/data/cache"
    APP2_EFS_PATH = "/data/app2"
    APP_CONTAINER_PATH = "/usr/app"
    CACHE_CONTAINER_PATH = "/var/cache/app"

    # Autoscaling
    EXPECTED_SCALABLE_TARGETS = 2
    EXPECTED_SCALING_POLICIES = 2
    REQUESTS_PER_TARGET = 50
    CPU_TARGET_PERCENT = 40
    APP1_MIN_TASKS = 1
    APP1_MAX_TASKS = 5

    # CloudWatch Logs
    LOG_RETENTION_DAYS = 7


# CloudFormation Output Descriptions
class OutputDescription:
    """Descriptions of the stack outputs"""
    LB_DNS = "ECS Load Balancer DNS Name"
    EFS_ID = "ECS EFS Id for {service}"
    EFS_ARN = "ECS EFS ARN for {service}"


# Predefined scaling metrics
class ScalingMetric:
    """Application Auto Scaling predefined metric types"""
    CPU = "ECSServiceAverageCPUUtilization"
    REQUEST_COUNT = "ALBRequestCountPerTarget"


# IAM Permissions
class IAMAction:
    """IAM action identifiers for permission testing"""
    EFS_CLIENT_MOUNT = "elasticfilesystem:ClientMount"
    EFS_CLIENT_WRITE = "elasticfilesystem:ClientWrite"
    EFS_CLIENT_ROOT_ACCESS = "elasticfilesystem:ClientRootAccess"
