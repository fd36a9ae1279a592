from typing import NamedTuple
from aws_cdk import aws_efs as efs, aws_iam as iam, custom_resources as cr
from constructs import Construct

_ACCESS_POINT_ARN = "AccessPointArn"
_ACCESS_POINT_ID = "AccessPointId"


class AccessPointConfig(NamedTuple):
    name: str
    posix_id: int
    path: str
    permissions: str = "777"


class AccessPointResource(NamedTuple):
    custom_resource: cr.AwsCustomResource
    access_point: efs.IAccessPoint


def access_point_parameters(file_system_id: str, config: AccessPointConfig) -> dict:
    """Request body for EFS CreateAccessPoint.

    `efs.AccessPoint` can't set the owner of the root directory and the POSIX
    user together at creation time, so the call is made directly.
    """
    return {
        "FileSystemId": file_system_id,
        "PosixUser": {
            "Gid": config.posix_id,
            "Uid": config.posix_id,
        },
        "RootDirectory": {
            "CreationInfo": {
                "OwnerGid": config.posix_id,
                "OwnerUid": config.posix_id,
                "Permissions": config.permissions,
            },
            "Path": config.path,
        },
        "Tags": [{"Key": "Name", "Value": config.name}],
    }


def create_access_point(
    scope: Construct,
    id: str,
    file_system: efs.IFileSystem,
    config: AccessPointConfig,
) -> AccessPointResource:
    # onCreate falls back to onUpdate, so the API is only called again
    # when the parameters change
    custom_resource = cr.AwsCustomResource(
        scope,
        f"EfsAccessPoint{config.name}",
        on_update=cr.AwsSdkCall(
            service="EFS",
            action="createAccessPoint",
            parameters=access_point_parameters(file_system.file_system_id, config),
            physical_resource_id=cr.PhysicalResourceId.from_response(_ACCESS_POINT_ARN),
            output_paths=[_ACCESS_POINT_ARN, _ACCESS_POINT_ID],
        ),
        on_delete=cr.AwsSdkCall(
            service="EFS",
            action="deleteAccessPoint",
            parameters={"AccessPointId": cr.PhysicalResourceIdReference()},
        ),
        # CreateAccessPoint with Tags also needs TagResource
        policy=cr.AwsCustomResourcePolicy.from_statements(
            [
                iam.PolicyStatement(
                    actions=[
                        "elasticfilesystem:CreateAccessPoint",
                        "elasticfilesystem:DeleteAccessPoint",
                        "elasticfilesystem:TagResource",
                    ],
                    resources=cr.AwsCustomResourcePolicy.ANY_RESOURCE,
                )
            ]
        ),
    )

    # re-import the response as something lambda/codebuild constructs accept
    access_point = efs.AccessPoint.from_access_point_attributes(
        scope,
        id,
        file_system=file_system,
        access_point_arn=custom_resource.get_response_field(_ACCESS_POINT_ARN),
    )

    return AccessPointResource(custom_resource, access_point)
