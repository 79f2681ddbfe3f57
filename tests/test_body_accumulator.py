from glbpack.packing.body import BodyAccumulator


def test_offsets_are_cumulative_without_gaps():
    body = BodyAccumulator()
    a = body.append(b"abc")
    b = body.append(b"")
    c = body.append(b"defgh")
    assert (a.offset, a.length) == (0, 3)
    assert (b.offset, b.length) == (3, 0)
    assert (c.offset, c.length) == (3, 5)
    assert body.length == 8
    assert len(body) == 3
    assert body.to_bytes() == b"abcdefgh"


def test_write_into_places_blocks_at_base():
    body = BodyAccumulator()
    body.append(b"\x01\x02")
    body.append(b"\x03")
    out = bytearray(b"." * 7)
    body.write_into(out, 4)
    assert bytes(out) == b"....\x01\x02\x03"


def test_write_into_rejects_short_buffer():
    body = BodyAccumulator()
    body.append(b"12345")
    out = bytearray(4)
    try:
        body.write_into(out, 0)
    except ValueError as exc:
        assert "does not fit" in str(exc)
    else:  # pragma: no cover
        raise AssertionError("expected ValueError")
