"""RADIUS and exec module constants.

Packet codes and attribute types follow RFC 2865 (authentication), RFC 2866
(accounting) and RFC 5176 (dynamic authorization). Microsoft vendor
attributes follow RFC 2548, and the MS-CHAPv2 value layouts follow RFC 2759.
Attribute codes above 255 are server-internal: they live in request
attribute lists but never appear on the wire.
"""

# Standard RADIUS Packet Codes (RFC 2865 §4.1, RFC 5176 §3)
RADIUS_ACCESS_REQUEST = 1  #: Access-Request packet code
RADIUS_ACCESS_ACCEPT = 2  #: Access-Accept packet code
RADIUS_ACCESS_REJECT = 3  #: Access-Reject packet code
RADIUS_ACCOUNTING_REQUEST = 4  #: Accounting-Request packet code
RADIUS_ACCOUNTING_RESPONSE = 5  #: Accounting-Response packet code
RADIUS_ACCESS_CHALLENGE = 11  #: Access-Challenge packet code
RADIUS_STATUS_SERVER = 12  #: Status-Server packet code
RADIUS_STATUS_CLIENT = 13  #: Status-Client packet code
RADIUS_DISCONNECT_REQUEST = 40
RADIUS_DISCONNECT_ACK = 41
RADIUS_DISCONNECT_NAK = 42
RADIUS_COA_REQUEST = 43
RADIUS_COA_ACK = 44
RADIUS_COA_NAK = 45

# Standard RADIUS Attribute Types (RFC 2865 §5)
ATTR_USER_NAME = 1
ATTR_USER_PASSWORD = 2
ATTR_CHAP_PASSWORD = 3
ATTR_NAS_IP_ADDRESS = 4
ATTR_NAS_PORT = 5
ATTR_SERVICE_TYPE = 6
ATTR_FRAMED_PROTOCOL = 7
ATTR_FRAMED_IP_ADDRESS = 8
ATTR_FILTER_ID = 11
ATTR_REPLY_MESSAGE = 18
ATTR_STATE = 24
ATTR_CLASS = 25
ATTR_VENDOR_SPECIFIC = 26
ATTR_SESSION_TIMEOUT = 27
ATTR_IDLE_TIMEOUT = 28
ATTR_CALLED_STATION_ID = 30
ATTR_CALLING_STATION_ID = 31
ATTR_NAS_IDENTIFIER = 32
ATTR_ACCT_STATUS_TYPE = 40
ATTR_ACCT_DELAY_TIME = 41
ATTR_ACCT_INPUT_OCTETS = 42
ATTR_ACCT_OUTPUT_OCTETS = 43
ATTR_ACCT_SESSION_ID = 44
ATTR_ACCT_AUTHENTIC = 45
ATTR_ACCT_SESSION_TIME = 46
ATTR_ACCT_INPUT_PACKETS = 47
ATTR_ACCT_OUTPUT_PACKETS = 48
ATTR_ACCT_TERMINATE_CAUSE = 49
ATTR_CHAP_CHALLENGE = 60
ATTR_NAS_PORT_TYPE = 61
ATTR_EAP_MESSAGE = 79
ATTR_MESSAGE_AUTHENTICATOR = 80

# Server-internal attributes (never encoded on the wire)
ATTR_AUTH_TYPE = 1000
ATTR_PACKET_TYPE = 1004
ATTR_EXEC_PROGRAM = 1038  #: run program, do not wait
ATTR_EXEC_PROGRAM_WAIT = 1039  #: run program, wait for exit status
ATTR_MS_CHAP_USE_NTLM_AUTH = 1119
ATTR_MS_CHAP_USER_NAME = 1151  #: user name override for MS-CHAP

# Vendor IDs (RFC 2865 §5.26)
VENDOR_MICROSOFT = 311

# Microsoft VSA Attribute Types (RFC 2548, Vendor-Id: 311)
MS_CHAP_RESPONSE = 1
MS_CHAP_ERROR = 2
MS_CHAP_DOMAIN = 10
MS_CHAP_CHALLENGE = 11
MS_CHAP_MPPE_KEYS = 12
MS_MPPE_SEND_KEY = 16
MS_MPPE_RECV_KEY = 17
MS_CHAP2_RESPONSE = 25
MS_CHAP2_SUCCESS = 26

# MS-CHAP2-Response value layout (RFC 2548 §2.3.2):
#   Ident(1) Flags(1) Peer-Challenge(16) Reserved(8) Response(24)
MSCHAP2_RESPONSE_LENGTH = 50
MSCHAP2_PEER_CHALLENGE_OFFSET = 2
MSCHAP2_PEER_CHALLENGE_LENGTH = 16
MSCHAP2_NT_RESPONSE_OFFSET = 26
MSCHAP2_NT_RESPONSE_LENGTH = 24
MSCHAP_AUTH_RESPONSE_LENGTH = 42  #: "S=" + 40 hex digits (RFC 2759 §8.7)

# ntlm_auth --request-nt-key output
NT_KEY_PREFIX = "NT_KEY: "
NT_KEY_HEX_LENGTH = 32
NT_KEY_LENGTH = 16

# Executor limits
EXEC_TIMEOUT = 10  #: default seconds before a waited child is killed
EXEC_TIMEOUT_MIN = 1
EXEC_TIMEOUT_MAX = 30
EXEC_OUTPUT_BUFFER = 1024  #: captured output bound, terminator included

EXTERNAL_CHECK_FAILED_MESSAGE = "Access denied (external check failed)"
