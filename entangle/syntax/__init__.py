# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from .parser import parse_construct, parse_constructs, parse_type
from .printer import format_item, format_items

__all__ = ["parse_construct", "parse_constructs", "parse_type", "format_item", "format_items"]
