# Check that CodeBuild has populated EFS, then run one inference.
#
#   python examples/invoke_inference.py lambda-efs-ml-dev-LambdaEfsMl https://.../image.jpg
import sys
import json
import boto3

_OUTPUT_KEY = "LambdaFunctionName"


def get_function_name(cfn, stack_name: str) -> str:
    response = cfn.describe_stacks(StackName=stack_name)
    outputs = response["Stacks"][0].get("Outputs", [])
    try:
        return next(x["OutputValue"] for x in outputs if x["OutputKey"] == _OUTPUT_KEY)
    except StopIteration:
        raise Exception(f"Stack '{stack_name}' has no '{_OUTPUT_KEY}' output")


def latest_build_status(codebuild, project_name: str) -> str | None:
    response = codebuild.list_builds_for_project(
        projectName=project_name, sortOrder="DESCENDING"
    )
    build_ids = response.get("ids", [])
    if not build_ids:
        return None

    builds = codebuild.batch_get_builds(ids=build_ids[:1])["builds"]
    return builds[0]["buildStatus"]


def invoke(lambda_, function_name: str, url: str) -> dict:
    response = lambda_.invoke(
        FunctionName=function_name,
        InvocationType="RequestResponse",
        Payload=json.dumps({"url": url}).encode("utf-8"),
    )
    payload = json.loads(response["Payload"].read())
    if "FunctionError" in response:
        raise Exception(f"Lambda error: {payload}")

    return payload


if __name__ == "__main__":
    stack_name, url = sys.argv[1], sys.argv[2]

    function_name = get_function_name(boto3.client("cloudformation"), stack_name)
    # function name is "{prefix}-{stage}-Lambda"
    project_name = function_name.removesuffix("-Lambda") + "-EFS-CodeBuild-Project"

    status = latest_build_status(boto3.client("codebuild"), project_name)
    print(f"{project_name}: {status}")
    if status != "SUCCEEDED":
        sys.exit(1)

    result = invoke(boto3.client("lambda"), function_name, url)
    print(json.dumps(json.loads(result["body"]), indent=2))
