r"""Transfer error taxonomy.

This module defines the numeric error codes reported by the transfer
engine, the subset of codes that are worth retrying, and the status codes
reported by the multiplexer. The numbering follows the libcurl error
table so that codes stay stable and familiar.
"""

from __future__ import annotations

__all__ = [
    "CONTINUABLE_ERROR_KINDS",
    "MultiStatus",
    "TransferErrorKind",
    "is_continuable",
    "to_error_kind",
]

from enum import IntEnum


class TransferErrorKind(IntEnum):
    """Error code reported by the transfer engine for one transfer.

    ``OK`` is the success sentinel and ``OTHER`` is the catch-all used
    for codes that are not part of the table.
    """

    OK = 0
    UNSUPPORTED_PROTOCOL = 1
    FAILED_INIT = 2
    URL_MALFORMAT = 3
    URL_MALFORMAT_USER = 4
    COULDNT_RESOLVE_PROXY = 5
    COULDNT_RESOLVE_HOST = 6
    COULDNT_CONNECT = 7
    FTP_WEIRD_SERVER_REPLY = 8
    REMOTE_ACCESS_DENIED = 9
    FTP_ACCEPT_FAILED = 10
    FTP_WEIRD_PASS_REPLY = 11
    FTP_ACCEPT_TIMEOUT = 12
    FTP_WEIRD_PASV_REPLY = 13
    FTP_WEIRD_227_FORMAT = 14
    FTP_CANT_GET_HOST = 15
    HTTP2 = 16
    FTP_COULDNT_SET_TYPE = 17
    PARTIAL_FILE = 18
    FTP_COULDNT_RETR_FILE = 19
    QUOTE_ERROR = 21
    HTTP_RETURNED_ERROR = 22
    WRITE_ERROR = 23
    UPLOAD_FAILED = 25
    READ_ERROR = 26
    OUT_OF_MEMORY = 27
    OPERATION_TIMEDOUT = 28
    FTP_PORT_FAILED = 30
    FTP_COULDNT_USE_REST = 31
    RANGE_ERROR = 33
    HTTP_POST_ERROR = 34
    SSL_CONNECT_ERROR = 35
    BAD_DOWNLOAD_RESUME = 36
    FILE_COULDNT_READ_FILE = 37
    LDAP_CANNOT_BIND = 38
    LDAP_SEARCH_FAILED = 39
    FUNCTION_NOT_FOUND = 41
    ABORTED_BY_CALLBACK = 42
    BAD_FUNCTION_ARGUMENT = 43
    INTERFACE_FAILED = 45
    TOO_MANY_REDIRECTS = 47
    UNKNOWN_TELNET_OPTION = 48
    TELNET_OPTION_SYNTAX = 49
    GOT_NOTHING = 52
    SSL_ENGINE_NOTFOUND = 53
    SSL_ENGINE_SETFAILED = 54
    SEND_ERROR = 55
    RECV_ERROR = 56
    SSL_CERTPROBLEM = 58
    SSL_CIPHER = 59
    SSL_CACERT = 60
    BAD_CONTENT_ENCODING = 61
    LDAP_INVALID_URL = 62
    FILESIZE_EXCEEDED = 63
    USE_SSL_FAILED = 64
    SEND_FAIL_REWIND = 65
    SSL_ENGINE_INITFAILED = 66
    LOGIN_DENIED = 67
    TFTP_NOTFOUND = 68
    TFTP_PERM = 69
    REMOTE_DISK_FULL = 70
    TFTP_ILLEGAL = 71
    TFTP_UNKNOWNID = 72
    REMOTE_FILE_EXISTS = 73
    TFTP_NOSUCHUSER = 74
    CONV_FAILED = 75
    CONV_REQD = 76
    SSL_CACERT_BADFILE = 77
    REMOTE_FILE_NOT_FOUND = 78
    SSH = 79
    SSL_SHUTDOWN_FAILED = 80
    AGAIN = 81
    SSL_CRL_BADFILE = 82
    SSL_ISSUER_ERROR = 83
    FTP_PRET_FAILED = 84
    RTSP_CSEQ_ERROR = 85
    RTSP_SESSION_ERROR = 86
    FTP_BAD_FILE_LIST = 87
    CHUNK_FAILED = 88
    NO_CONNECTION_AVAILABLE = 89
    SSL_PINNED_PUBKEY_NOT_MATCH = 90
    SSL_INVALID_CERT_STATUS = 91
    HTTP2_STREAM = 92
    RECURSIVE_API_CALL = 93
    AUTH_ERROR = 94
    HTTP3 = 95
    QUIC_CONNECT_ERROR = 96
    PROXY = 97
    SSL_CLIENT_CERT = 98
    UNRECOVERABLE_POLL = 99
    TOO_LARGE = 100
    ECH_REQUIRED = 101

    OTHER = -1


class MultiStatus(IntEnum):
    """Status code returned by the multiplexer operations."""

    CALL_MULTI_PERFORM = -1
    OK = 0
    BAD_HANDLE = 1
    BAD_EASY_HANDLE = 2
    OUT_OF_MEMORY = 3
    INTERNAL_ERROR = 4
    BAD_SOCKET = 5
    UNKNOWN_OPTION = 6
    ADDED_ALREADY = 7
    RECURSIVE_API_CALL = 8
    WAKEUP_FAILURE = 9
    BAD_FUNCTION_ARGUMENT = 10
    ABORTED_BY_CALLBACK = 11
    UNRECOVERABLE_POLL = 12


# Transfer failures that may succeed when the transfer is attempted again
CONTINUABLE_ERROR_KINDS: frozenset[TransferErrorKind] = frozenset(
    {
        TransferErrorKind.COULDNT_RESOLVE_HOST,
        TransferErrorKind.COULDNT_CONNECT,
        TransferErrorKind.HTTP_RETURNED_ERROR,
        TransferErrorKind.READ_ERROR,
        TransferErrorKind.OPERATION_TIMEDOUT,
        TransferErrorKind.HTTP_POST_ERROR,
        TransferErrorKind.SSL_CONNECT_ERROR,
    }
)


def to_error_kind(code: int) -> TransferErrorKind:
    """Map a numeric engine error code to its error kind.

    Args:
        code: The numeric error code.

    Returns:
        The matching error kind, or ``TransferErrorKind.OTHER`` if the
        code is not in the table.

    Example:
        ```pycon
        >>> from httpchannel.errors import to_error_kind
        >>> to_error_kind(28)
        <TransferErrorKind.OPERATION_TIMEDOUT: 28>
        >>> to_error_kind(20)
        <TransferErrorKind.OTHER: -1>

        ```
    """
    try:
        return TransferErrorKind(code)
    except ValueError:
        return TransferErrorKind.OTHER


def is_continuable(code: int) -> bool:
    """Indicate whether a failed transfer may be attempted again.

    Args:
        code: The numeric engine error code (or error kind).

    Returns:
        ``True`` if the code belongs to ``CONTINUABLE_ERROR_KINDS``.

    Example:
        ```pycon
        >>> from httpchannel.errors import TransferErrorKind, is_continuable
        >>> is_continuable(TransferErrorKind.COULDNT_CONNECT)
        True
        >>> is_continuable(TransferErrorKind.URL_MALFORMAT)
        False

        ```
    """
    return to_error_kind(code) in CONTINUABLE_ERROR_KINDS
