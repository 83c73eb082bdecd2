import click


class CLIError(click.ClickException):
    """Error of an ``ssm-document`` command. Click prints it to stderr with an ``Error:`` prefix and exits with 1."""

    def format_message(self) -> str:
        return click.style(self.message, fg="red")
