from .accesslog import access_log_step, guess_parser
from .curl import curl_step, parse_curl
from .grpcurl import grpcurl_step, parse_grpcurl
from .shell import exec_step, join_commands

__all__ = [
    "access_log_step",
    "guess_parser",
    "curl_step",
    "parse_curl",
    "grpcurl_step",
    "parse_grpcurl",
    "exec_step",
    "join_commands",
]
