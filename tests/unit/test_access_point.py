from inference.access_point import AccessPointConfig, access_point_parameters


def test_access_point_parameters():
    config = AccessPointConfig(name="demo-dev-Common", posix_id=1000, path="/lambda")

    assert access_point_parameters("fs-12345678", config) == {
        "FileSystemId": "fs-12345678",
        "PosixUser": {"Gid": 1000, "Uid": 1000},
        "RootDirectory": {
            "CreationInfo": {
                "OwnerGid": 1000,
                "OwnerUid": 1000,
                "Permissions": "777",
            },
            "Path": "/lambda",
        },
        "Tags": [{"Key": "Name", "Value": "demo-dev-Common"}],
    }


def test_custom_permissions():
    config = AccessPointConfig(name="x", posix_id=1001, path="/models", permissions="750")
    params = access_point_parameters("fs-1", config)

    assert params["RootDirectory"]["CreationInfo"]["Permissions"] == "750"
    assert params["PosixUser"] == {"Gid": 1001, "Uid": 1001}
