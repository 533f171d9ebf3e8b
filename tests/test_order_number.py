from core.order_number import generate_order_number, generate_short_order_number, is_valid_order_number


def test_generated_numbers_are_valid():
    number = generate_order_number()
    assert is_valid_order_number(number)
    assert len(number.split("-")[2]) == 5


def test_short_number_format():
    number = generate_short_order_number()
    prefix, digits, suffix = number.split("-")
    assert prefix == "ORD"
    assert len(digits) == 6
    assert len(suffix) == 2
    assert is_valid_order_number(number)


def test_invalid_numbers():
    assert not is_valid_order_number("")
    assert not is_valid_order_number(None)
    assert not is_valid_order_number("ord-123-abc")
    assert not is_valid_order_number("ORD-12a-XYZ")
