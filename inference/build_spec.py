from typing import List, Optional
from aws_cdk import aws_codebuild as codebuild

DEFAULT_INSTALL_PACKAGES = "tensorflow"
MODEL_URL = "https://storage.googleapis.com/tfhub-modules/google/openimages_v4/ssd/mobilenet_v2/1.tar.gz"

# CodeBuild exposes the mount point of the "efs1" file system location here
_EFS_ROOT = "$CODEBUILD_EFS1/lambda"


def build_commands(install_packages: Optional[str] = None, posix_id: int = 1000) -> List[str]:
    packages = install_packages or DEFAULT_INSTALL_PACKAGES
    return [
        "echo 'Downloading and copying model...'",
        f"mkdir -p {_EFS_ROOT}/model",
        f"curl {MODEL_URL} --output /tmp/1.tar.gz",
        f"tar zxf /tmp/1.tar.gz -C {_EFS_ROOT}/model",
        "echo 'Installing virtual environment...'",
        f"mkdir -p {_EFS_ROOT}",
        f"python3 -m venv {_EFS_ROOT}/tensorflow",
        f"echo 'Installing {packages}...'",
        f"source {_EFS_ROOT}/tensorflow/bin/activate && pip3 install {packages} requests",
        "echo 'Changing folder permissions...'",
        f"chown -R {posix_id}:{posix_id} {_EFS_ROOT}/",
    ]


def build_spec(
    install_packages: Optional[str] = None, posix_id: int = 1000
) -> codebuild.BuildSpec:
    return codebuild.BuildSpec.from_object(
        {
            "version": "0.2",
            "env": {"shell": "bash"},
            "phases": {
                "build": {
                    "commands": build_commands(install_packages, posix_id),
                },
            },
        }
    )
