import click

from rewards_deployment.fees import to_wei


class FeeAmount(click.ParamType):
    """A non-negative gas fee such as '100 gwei' or a plain amount of wei."""

    name = "fee_amount"

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            ivalue = value
        else:
            try:
                ivalue = to_wei(value)
            except ValueError:
                self.fail(f"{value} is not a valid fee amount", param, ctx)
        if ivalue < 0:
            self.fail(f"{value} must not be negative", param, ctx)
        return ivalue
