from pathlib import Path
from typing import Optional
from tagging import add_tags
from aws_cdk import (
    CfnOutput,
    Duration,
    RemovalPolicy,
    Size,
    Stack,
    aws_codebuild as codebuild,
    aws_ec2 as ec2,
    aws_efs as efs,
    aws_iam as iam,
    aws_lambda as lambda_,
    custom_resources as cr,
)
from constructs import Construct
from inference.access_point import AccessPointConfig, create_access_point
from inference.build_spec import build_spec

_SRC_DIR = str(Path(__file__).parents[1] / "src")

_NFS_PORT = 2049
_POSIX_ID = 1000
_MOUNT_PATH = "/mnt/python"
_NFS_MOUNT_OPTIONS = "nfsvers=4.1,rsize=1048576,wsize=1048576,hard,timeo=600,retrans=2"

_EFS_CLIENT_POLICY = "AmazonElasticFileSystemClientFullAccess"
_BUILD_IMAGE = "public.ecr.aws/sam/build-python3.10"


class InferenceStack(Stack):
    def create_vpc(self) -> ec2.Vpc:
        return ec2.Vpc(
            self,
            f"{self.base_name}-Vpc",
            max_azs=2,
            nat_gateways=1,
            subnet_configuration=[
                ec2.SubnetConfiguration(
                    name="public",
                    subnet_type=ec2.SubnetType.PUBLIC,
                ),
                ec2.SubnetConfiguration(
                    name="private",
                    subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS,
                ),
            ],
        )

    def create_security_group(self, id: str, name: str) -> ec2.SecurityGroup:
        return ec2.SecurityGroup(
            self,
            f"{self.base_name}-{id}",
            vpc=self.vpc,
            security_group_name=f"{self.base_name}-{name}",
            allow_all_outbound=True,
        )

    def create_file_system(self) -> efs.FileSystem:
        # provisioned throughput kept low to save cost
        return efs.FileSystem(
            self,
            f"{self.base_name}-EFS",
            file_system_name=f"{self.base_name}-EFS",
            vpc=self.vpc,
            vpc_subnets=self.subnets,
            security_group=self.efs_sg,
            throughput_mode=efs.ThroughputMode.PROVISIONED,
            provisioned_throughput_per_second=Size.mebibytes(10),
            removal_policy=RemovalPolicy.DESTROY,  # not for production
        )

    def create_lambda(self) -> lambda_.Function:
        function = lambda_.Function(
            self,
            f"{self.base_name}-Lambda",
            function_name=f"{self.base_name}-Lambda",
            runtime=lambda_.Runtime.PYTHON_3_10,
            code=lambda_.Code.from_asset(_SRC_DIR),
            handler="main.lambda_handler",
            vpc=self.vpc,
            vpc_subnets=self.subnets,
            security_groups=[self.lambda_sg],
            timeout=Duration.minutes(2),
            memory_size=4096,
            reserved_concurrent_executions=10,
            filesystem=lambda_.FileSystem.from_efs_access_point(
                self.access_point, _MOUNT_PATH
            ),
            environment={
                "mount_path": _MOUNT_PATH,
                "min_score": "0.1",
                "max_results": "10",
                "log_level": "INFO",
            },
        )
        function.role.add_managed_policy(
            iam.ManagedPolicy.from_aws_managed_policy_name(_EFS_CLIENT_POLICY)
        )
        add_tags(function, {"lambda": "inference"})

        return function

    def create_build_project(self, install_packages: Optional[str]) -> codebuild.Project:
        project = codebuild.Project(
            self,
            f"{self.base_name}-EFS-CodeBuild-Project",
            project_name=f"{self.base_name}-EFS-CodeBuild-Project",
            description="Installs Python libraries to EFS.",
            vpc=self.vpc,
            subnet_selection=self.subnets,
            security_groups=[self.ec2_sg],
            build_spec=build_spec(install_packages, posix_id=_POSIX_ID),
            environment=codebuild.BuildEnvironment(
                build_image=codebuild.LinuxBuildImage.from_docker_registry(_BUILD_IMAGE),
                compute_type=codebuild.ComputeType.LARGE,
                privileged=True,
            ),
            timeout=Duration.minutes(30),
        )

        # codebuild.Project has no file system mount option
        cfn_project: codebuild.CfnProject = project.node.default_child
        cfn_project.file_system_locations = [
            codebuild.CfnProject.ProjectFileSystemLocationProperty(
                type="EFS",
                location=f"{self.file_system.file_system_id}.efs.{self.region}.amazonaws.com:/",
                mount_point=_MOUNT_PATH,
                identifier="efs1",
                mount_options=_NFS_MOUNT_OPTIONS,
            )
        ]
        cfn_project.logs_config = codebuild.CfnProject.LogsConfigProperty(
            cloud_watch_logs=codebuild.CfnProject.CloudWatchLogsConfigProperty(
                status="ENABLED"
            )
        )
        add_tags(project, {"codebuild": "efs"})

        return project

    def create_build_trigger(self) -> cr.AwsCustomResource:
        # fires once on stack creation; updates don't re-run the build
        return cr.AwsCustomResource(
            self,
            f"{self.base_name}-Trigger-CodeBuild",
            on_create=cr.AwsSdkCall(
                service="CodeBuild",
                action="startBuild",
                parameters={"projectName": self.build_project.project_name},
                physical_resource_id=cr.PhysicalResourceId.from_response("build.id"),
            ),
            policy=cr.AwsCustomResourcePolicy.from_sdk_calls(
                resources=cr.AwsCustomResourcePolicy.ANY_RESOURCE
            ),
        )

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        prefix: str,
        stage: str,
        install_packages: Optional[str] = None,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.prefix = prefix
        self.stage = stage
        self.base_name = f"{prefix}-{stage}"

        # VPC
        self.vpc = self.create_vpc()
        self.subnets = ec2.SubnetSelection(
            subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS
        )

        # Security groups
        self.ec2_sg = self.create_security_group("EC2-SG", "EC2-SG")
        self.lambda_sg = self.create_security_group("Lambda-SG", "Lambda-SG")
        self.efs_sg = self.create_security_group("Efs-SG", "EFS-SG")
        self.ec2_sg.connections.allow_to(self.efs_sg, ec2.Port.tcp(_NFS_PORT))
        self.lambda_sg.connections.allow_to(self.efs_sg, ec2.Port.tcp(_NFS_PORT))

        # EFS
        self.file_system = self.create_file_system()
        self.access_point_resource, self.access_point = create_access_point(
            self,
            f"{self.base_name}-EFS-Access-Point",
            file_system=self.file_system,
            config=AccessPointConfig(
                name=f"{self.base_name}-Common",
                posix_id=_POSIX_ID,
                path="/lambda",
            ),
        )

        # Inference lambda
        self.function = self.create_lambda()

        # CodeBuild installs the python libraries and model onto EFS
        self.build_project = self.create_build_project(install_packages)
        self.build_trigger = self.create_build_trigger()

        # the access point arn is a response field, not a resource handle
        self.function.node.add_dependency(self.access_point_resource)
        self.build_project.node.add_dependency(self.access_point_resource)
        # the build mounts EFS by DNS name, so the mount targets must exist first
        self.build_trigger.node.add_dependency(self.file_system.mount_targets_available)

        CfnOutput(self, "LambdaFunctionName", value=self.function.function_name)
