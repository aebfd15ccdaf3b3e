from services.otp_service import OTPStore


def test_request_code_is_six_digits():
    store = OTPStore()
    code = store.request_code("a@example.com")
    assert len(code) == 6
    assert code.isdigit()


def test_verify_consumes_code():
    store = OTPStore()
    code = store.request_code("a@example.com")
    assert store.verify_code("a@example.com", code) is True
    assert store.verify_code("a@example.com", code) is False
    assert len(store) == 0


def test_verify_without_pending_code_is_false():
    store = OTPStore()
    assert store.verify_code("nobody@example.com", "000000") is False


def test_mismatch_keeps_pending_code():
    store = OTPStore()
    code = store.request_code("a@example.com")
    wrong = "000000" if code != "000000" else "111111"
    assert store.verify_code("a@example.com", wrong) is False
    assert store.verify_code("a@example.com", code) is True


def test_new_request_replaces_pending_code(monkeypatch):
    store = OTPStore()
    codes = iter([123456, 654321])
    monkeypatch.setattr("services.otp_service.secrets.randbelow", lambda n: next(codes))
    first = store.request_code("a@example.com")
    second = store.request_code("a@example.com")
    assert (first, second) == ("123456", "654321")
    assert store.verify_code("a@example.com", first) is False
    assert store.verify_code("a@example.com", second) is True


def test_codes_keep_leading_zeros(monkeypatch):
    store = OTPStore()
    monkeypatch.setattr("services.otp_service.secrets.randbelow", lambda n: 42)
    assert store.request_code("a@example.com") == "000042"


def test_codes_are_per_email():
    store = OTPStore()
    a = store.request_code("a@example.com")
    store.request_code("b@example.com")
    assert store.verify_code("a@example.com", a) is True
    assert len(store) == 1


def test_discard_drops_pending_code():
    store = OTPStore()
    code = store.request_code("a@example.com")
    store.discard("a@example.com")
    store.discard("missing@example.com")
    assert store.verify_code("a@example.com", code) is False
