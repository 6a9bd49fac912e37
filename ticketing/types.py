from typing import NamedTuple, Sequence

import click
from eth_typing import ChecksumAddress as ChecksumAddressType
from eth_utils import to_checksum_address


class MinInt(click.ParamType):
    name = "minint"

    def __init__(self, min_value):
        self.min_value = min_value

    def convert(self, value, param, ctx):
        try:
            ivalue = int(value)
        except ValueError:
            self.fail(f"{value} is not a valid integer", param, ctx)
        if ivalue < self.min_value:
            self.fail(
                f"{value} is less than the minimum allowed value of {self.min_value}", param, ctx
            )
        return ivalue


class ChecksumAddress(click.ParamType):
    name = "checksum_address"

    def convert(self, value, param, ctx):
        try:
            value = to_checksum_address(value=value)
        except ValueError:
            self.fail(f"{value} is not a valid ethereum address", param, ctx)
        else:
            return value


#
# Structs passed verbatim to the ticketing contracts (field order is ABI order)
#


class InitData(NamedTuple):
    erc20_token_address: ChecksumAddressType
    token_uri_is_enumerable: bool
    royalty_recipient: ChecksumAddressType
    royalty_percentage_bps: int
    max_supply: int
    price_per_mint: int


class Part(NamedTuple):
    item_type: int
    z: int
    equippable: Sequence[ChecksumAddressType]
    metadata_uri: str


class IntakePart(NamedTuple):
    part_id: int
    part: Part


class IntakeEquip(NamedTuple):
    token_id: int
    child_index: int
    asset_id: int
    slot_part_id: int
    child_asset_id: int
