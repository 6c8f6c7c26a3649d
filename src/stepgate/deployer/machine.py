"""The deploy workflow definition."""

from __future__ import annotations

from stepgate.core.config import AppSettings
from stepgate.workflow.definition import WorkflowDefinition, parse_definition, render_resources

RESOURCE = "arn:aws:lambda:{{aws_region}}:{{aws_account}}:function:{{lambda_name}}"

DEPLOYER_STATE_MACHINE = """{
  "Comment": "Release Deployer",
  "StartAt": "Validate",
  "States": {
    "Validate": {
      "Type": "TaskFn",
      "Resource": "%(resource)s",
      "Comment": "Validate and Set Defaults",
      "Next": "Lock",
      "Catch": [
        {
          "Comment": "Bad Release or Error GoTo end",
          "ErrorEquals": ["States.ALL"],
          "ResultPath": "$.error",
          "Next": "FailureClean"
        }
      ]
    },
    "Lock": {
      "Type": "TaskFn",
      "Resource": "%(resource)s",
      "Comment": "Grab Lock",
      "Next": "ValidateResources",
      "Catch": [
        {
          "Comment": "Something else is deploying",
          "ErrorEquals": ["LockExistsError"],
          "ResultPath": "$.error",
          "Next": "FailureClean"
        },
        {
          "Comment": "Try Release Lock Then Fail",
          "ErrorEquals": ["States.ALL"],
          "ResultPath": "$.error",
          "Next": "ReleaseLockFailure"
        }
      ]
    },
    "ValidateResources": {
      "Type": "TaskFn",
      "Resource": "%(resource)s",
      "Comment": "ValidateResources",
      "Next": "Deploy",
      "Catch": [
        {
          "Comment": "Try Release Lock Then Fail",
          "ErrorEquals": ["States.ALL"],
          "ResultPath": "$.error",
          "Next": "ReleaseLockFailure"
        }
      ]
    },
    "Deploy": {
      "Type": "TaskFn",
      "Resource": "%(resource)s",
      "Comment": "Deploy the Release",
      "Next": "Success",
      "Catch": [
        {
          "Comment": "Nothing was changed, Release Lock and Fail",
          "ErrorEquals": ["DeployError", "HaltError"],
          "ResultPath": "$.error",
          "Next": "ReleaseLockFailure"
        },
        {
          "Comment": "Unsure of State, Leave Lock and Fail",
          "ErrorEquals": ["States.ALL"],
          "ResultPath": "$.error",
          "Next": "FailureDirty"
        }
      ]
    },
    "ReleaseLockFailure": {
      "Type": "TaskFn",
      "Resource": "%(resource)s",
      "Comment": "Release the Lock and Fail",
      "Next": "FailureClean",
      "Retry": [{
        "Comment": "Keep trying to Release",
        "ErrorEquals": ["States.ALL"],
        "MaxAttempts": 3,
        "IntervalSeconds": 30
      }],
      "Catch": [{
        "ErrorEquals": ["States.ALL"],
        "ResultPath": "$.error",
        "Next": "FailureDirty"
      }]
    },
    "FailureClean": {
      "Comment": "Deploy Failed Cleanly",
      "Type": "Fail",
      "Error": "NotifyError"
    },
    "FailureDirty": {
      "Comment": "Deploy Failed, Resources left in Bad State, ALERT!",
      "Type": "Fail",
      "Error": "AlertError"
    },
    "Success": {
      "Type": "Succeed"
    }
  }
}""" % {"resource": RESOURCE}


def state_machine_json(settings: AppSettings | None = None) -> str:
    """The deployer definition with Resource placeholders filled in."""
    if settings is None:
        settings = AppSettings()
    return render_resources(DEPLOYER_STATE_MACHINE, {
        "aws_region": settings.deployer.region or "",
        "aws_account": settings.deployer.account_id or "",
        "lambda_name": settings.deployer.lambda_name,
    })


def state_machine_definition(settings: AppSettings | None = None) -> WorkflowDefinition:
    return parse_definition(state_machine_json(settings))
