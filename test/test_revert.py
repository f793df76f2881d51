from eth_abi import encode

from txlens.parsers.revert import (
    CustomError,
    ErrorString,
    Panic,
    Unknown,
    decode_revert_data,
    describe_revert,
)

ERROR_NOPE = "0x08c379a0" + encode(["string"], ["nope"]).hex()
PANIC_DIV_ZERO = "0x4e487b71" + encode(["uint256"], [0x12]).hex()


def test_error_string():
    decoded = decode_revert_data(ERROR_NOPE)

    assert decoded == ErrorString(reason="nope")
    assert describe_revert(decoded) == 'Error("nope")'


def test_panic_divide_by_zero():
    decoded = decode_revert_data(PANIC_DIV_ZERO)

    assert decoded == Panic(code=0x12, name="divide by zero")
    assert describe_revert(decoded) == "Panic(0x12: divide by zero)"
    assert decoded.to_dict() == {"kind": "Panic", "code": "18", "name": "divide by zero"}


def test_unknown_panic_code_has_no_name():
    decoded = decode_revert_data("0x4e487b71" + encode(["uint256"], [0x99]).hex())

    assert decoded == Panic(code=0x99)
    assert describe_revert(decoded) == "Panic(0x99: unknown panic code)"


def test_custom_error_selector():
    decoded = decode_revert_data("0xDEADBEEF" + "00" * 32)

    assert decoded == CustomError(selector="0xdeadbeef")


def test_accepts_bytes_and_missing_prefix():
    assert decode_revert_data(bytes.fromhex(ERROR_NOPE[2:])) == ErrorString(reason="nope")
    assert decode_revert_data(ERROR_NOPE[2:]) == ErrorString(reason="nope")


def test_empty_and_garbage_never_raise():
    assert decode_revert_data(None) == Unknown()
    assert decode_revert_data("0x") == Unknown()
    assert decode_revert_data("0x1234") == Unknown(data="0x1234")
    assert decode_revert_data("not hex") == Unknown(data="not hex")
    # Selector matches but the body is truncated
    assert decode_revert_data("0x08c379a0" + "00" * 10).kind == "Unknown"
    assert describe_revert(Unknown()) == "Execution reverted"
