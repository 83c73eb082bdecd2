from ssm_document.version import __version__

VERSION = __version__

# resource type handled by this provider
SSM_DOCUMENT_RESOURCE_TYPE = "AWS::SSM::Document"

# entry point namespace under which resource provider plugins are registered
RESOURCE_PROVIDER_PLUGIN_NAMESPACE = "ssm_document.resource_providers"

# default poll interval and wall-clock target of the create stabilization
DEFAULT_CALLBACK_DELAY_SECONDS = 30
DEFAULT_STABILIZATION_TIMEOUT_SECONDS = 10 * 60

# system tag which carries the name of the CloudFormation stack
STACK_NAME_SYSTEM_TAG = "aws:cloudformation:stack-name"

# document version used for all describe/get/update calls
LATEST_DOCUMENT_VERSION = "$LATEST"

# default region, if none is configured in the environment
AWS_REGION_US_EAST_1 = "us-east-1"

# strings which enable boolean environment variables
TRUE_STRINGS = ("1", "true", "True")

# log levels accepted by SSM_DOCUMENT_LOG
LOG_LEVELS = ("trace", "debug", "info", "warn", "error", "warning")
LOG_TRACE = "trace"
TRACE_LOG_LEVELS = [LOG_TRACE]


# parent logger of the per-resource loggers handed to the handlers, the child name is the logical resource id
HANDLER_LOGGER_NAME = "ssm_document.handler"
