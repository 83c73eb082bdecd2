import json
import logging
import os
import traceback
import uuid
from typing import Optional

import click
import yaml

from ssm_document import config
from ssm_document.cli.exceptions import CLIError
from ssm_document.constants import SSM_DOCUMENT_RESOURCE_TYPE, STACK_NAME_SYSTEM_TAG, VERSION
from ssm_document.resource_provider import (
    OperationStatus,
    ProgressEvent,
    ResourceProviderExecutor,
    ResourceProviderPayload,
)


class SSMDocumentCliGroup(click.Group):
    """
    A Click group used for the top-level ``ssm-document`` command group. It wraps all unexpected exceptions in a
    CLIError, for a unified error message.
    """

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except click.exceptions.Exit:
            raise
        except click.ClickException:
            if ctx and ctx.params.get("debug"):
                click.echo(traceback.format_exc())
            raise
        except Exception as e:
            if ctx and ctx.params.get("debug"):
                click.echo(traceback.format_exc())
            raise CLIError(str(e)) from e


def _setup_cli_debug() -> None:
    from ssm_document.logging.setup import setup_logging_for_cli

    config.DEBUG = True
    os.environ["DEBUG"] = "1"

    setup_logging_for_cli(logging.DEBUG)


_click_format_option = click.option(
    "-f",
    "--format",
    "format_",
    type=click.Choice(["plain", "json"]),
    default="plain",
    help="The formatting style for the command output.",
)


def parse_tags(values: tuple[str, ...]) -> dict[str, str]:
    tags = {}
    for value in values:
        key, sep, tag_value = value.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Tag '{value}' is not of the form KEY=VALUE", param_hint="--tag")
        tags[key] = tag_value
    return tags


def load_model(model_file) -> dict:
    """Loads the document model from a JSON or YAML file."""
    model = yaml.safe_load(model_file)
    if not isinstance(model, dict):
        raise CLIError(f"{model_file.name} does not contain a document model")
    return model


def event_to_dict(event: ProgressEvent) -> dict:
    context = event.callback_context
    result = {
        "status": event.status.name,
        "message": event.message,
        "errorCode": event.error_code.value if event.error_code else None,
        "callbackContext": context.to_dict() if context is not None else None,
        "callbackDelaySeconds": event.callback_delay_seconds,
        "resourceModel": event.resource_model,
    }
    if event.resource_models is not None:
        result["resourceModels"] = event.resource_models
        result["nextToken"] = event.next_token
    return result


def print_event(event: ProgressEvent, format_: str) -> None:
    if format_ == "json":
        click.echo(json.dumps(event_to_dict(event), default=str))
        return

    line = f"{event.status.name:<12} {event.message}"
    if event.error_code:
        line += f" ({event.error_code.value})"
    if not event.status.is_terminal:
        line += f" - next check in {event.callback_delay_seconds}s"
    click.echo(line)

    if event.status.is_terminal and event.resource_models is not None:
        for model in event.resource_models:
            click.echo(f"  {model.get('Name')}")


def build_payload(
    action: str,
    model: dict,
    region: str,
    stack_name: Optional[str] = None,
    tags: Optional[dict[str, str]] = None,
    request_token: Optional[str] = None,
    next_token: Optional[str] = None,
) -> ResourceProviderPayload:
    system_tags = {STACK_NAME_SYSTEM_TAG: stack_name} if stack_name else {}
    return {
        "action": action,
        "awsAccountId": "",
        "region": region,
        "resourceType": SSM_DOCUMENT_RESOURCE_TYPE,
        "callbackContext": None,
        "clientRequestToken": request_token or str(uuid.uuid4()),
        "nextToken": next_token,
        "requestData": {
            "logicalResourceId": model.get("Name") or "Document",
            "resourceProperties": model,
            "systemTags": system_tags,
            "stackTags": tags or {},
        },
    }


def run_action(ctx: click.Context, payload: ResourceProviderPayload, max_iterations: int = 1):
    format_ = ctx.obj["format"]
    executor = ResourceProviderExecutor(
        stack_name=ctx.obj.get("stack_name") or "", stack_id=""
    )
    event = executor.deploy_loop(
        payload,
        max_iterations=max_iterations,
        on_event=lambda e: print_event(e, format_),
    )
    if event.status == OperationStatus.FAILED:
        ctx.exit(1)


@click.group(
    name="ssm-document",
    help="Provision and inspect SSM documents",
    cls=SSMDocumentCliGroup,
    context_settings={"help_option_names": ["-h", "--help"], "show_default": True},
)
@click.version_option(VERSION, "--version", "-v", message="ssm-document %(version)s")
@click.option("-d", "--debug", is_flag=True, help="Enable CLI debugging mode")
@click.option("--region", default=config.DEFAULT_REGION, help="AWS region of the document")
@click.option("--endpoint-url", help="Endpoint URL of the SSM API")
@_click_format_option
@click.pass_context
def ssm_document(ctx: click.Context, debug, region, endpoint_url, format_) -> None:
    if debug:
        _setup_cli_debug()
    else:
        from ssm_document.logging.setup import setup_logging_from_config

        setup_logging_from_config()

    if endpoint_url:
        config.SSM_ENDPOINT_URL = endpoint_url

    ctx.ensure_object(dict)
    ctx.obj["region"] = region
    ctx.obj["format"] = format_


@ssm_document.command(name="create", short_help="Create a document and wait until it is active")
@click.argument("model_file", type=click.File("r"))
@click.option("--stack-name", help="Stack name used as prefix of generated document names")
@click.option("--tag", "tags", multiple=True, help="Tag of the document, as KEY=VALUE")
@click.option("--request-token", help="Idempotency token, generated names are derived from it")
@click.option(
    "--max-iterations",
    type=int,
    default=config.SSM_DOCUMENT_STABILIZATION_RETRIES + 2,
    help="Maximum number of handler invocations",
)
@click.pass_context
def cmd_create(ctx: click.Context, model_file, stack_name, tags, request_token, max_iterations):
    """
    Create the document described by MODEL_FILE (JSON or YAML), using the properties of an AWS::SSM::Document
    resource, and check its status until it is active.
    """
    ctx.obj["stack_name"] = stack_name
    payload = build_payload(
        "Add",
        load_model(model_file),
        ctx.obj["region"],
        stack_name=stack_name,
        tags=parse_tags(tags),
        request_token=request_token,
    )
    run_action(ctx, payload, max_iterations=max_iterations)


@ssm_document.command(name="describe", short_help="Show the latest version of a document")
@click.argument("name")
@click.pass_context
def cmd_describe(ctx: click.Context, name: str):
    run_action(ctx, build_payload("Read", {"Name": name}, ctx.obj["region"]))


@ssm_document.command(name="delete", short_help="Delete a document")
@click.argument("name")
@click.pass_context
def cmd_delete(ctx: click.Context, name: str):
    run_action(ctx, build_payload("Remove", {"Name": name}, ctx.obj["region"]))


@ssm_document.command(name="list", short_help="List the documents owned by the account")
@click.option("--next-token", help="Token of the page to list")
@click.pass_context
def cmd_list(ctx: click.Context, next_token: Optional[str]):
    run_action(ctx, build_payload("List", {}, ctx.obj["region"], next_token=next_token))


def main():
    ssm_document()


if __name__ == "__main__":
    main()
