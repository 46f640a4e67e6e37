"""
Tests for the SCALE primitives and the justification/header schema.
"""

import pytest

from grandpa.codec import (
    decode_header,
    decode_justification,
    encode_header,
    encode_justification,
)
from grandpa.config import ChainConfig
from grandpa.enums import DigestItemKind
from grandpa.errors import CodecError
from grandpa.models import DigestItem, Header
from helper.codec import ScaleReader, encode_compact, encode_uint


class TestCompactIntegers:
    """Compact integer encoding and canonicality checks."""

    @pytest.mark.parametrize(
        "value, encoded",
        [
            (0, "00"),
            (1, "04"),
            (63, "fc"),
            (64, "0101"),
            (16383, "fdff"),
            (16384, "02000100"),
            ((1 << 30) - 1, "feffffff"),
            (1 << 30, "0300000040"),
            (1 << 32, "070000000001"),
        ],
    )
    def test_known_encodings(self, value, encoded):
        assert encode_compact(value).hex() == encoded
        assert ScaleReader(bytes.fromhex(encoded)).read_compact() == value

    @pytest.mark.parametrize(
        "raw",
        [
            "0500",          # 1 in two-byte mode
            "02000000",      # 0 in four-byte mode
            "03ffffff00",    # fits four-byte mode
            "070000008000",  # most significant byte is zero
        ],
    )
    def test_non_canonical_rejected(self, raw):
        with pytest.raises(CodecError):
            ScaleReader(bytes.fromhex(raw)).read_compact()

    def test_wider_than_type_rejected(self):
        assert ScaleReader(encode_compact((1 << 32) - 1)).read_compact(max_bytes=4) == (1 << 32) - 1
        with pytest.raises(CodecError):
            ScaleReader(encode_compact(1 << 32)).read_compact(max_bytes=4)

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            encode_compact(-1)


class TestScaleReader:
    """Bounds checks of the reader."""

    def test_truncated_fixed_read(self):
        reader = ScaleReader(b"\x01\x02")
        with pytest.raises(CodecError):
            reader.read_fixed(3)

    def test_length_prefix_larger_than_input(self):
        # claims 10 elements, carries 2 bytes
        reader = ScaleReader(encode_compact(10) + b"\x00\x00")
        with pytest.raises(CodecError):
            reader.read_bytes()

    def test_finish_rejects_trailing_bytes(self):
        reader = ScaleReader(encode_uint(7, 4) + b"\x00")
        assert reader.read_uint(4) == 7
        with pytest.raises(CodecError):
            reader.finish()

    def test_uint_out_of_range(self):
        with pytest.raises(ValueError):
            encode_uint(1 << 32, 4)


class TestHeaderSchema:
    """Header layout and hashing."""

    def setup_method(self):
        self.header = Header(
            parent_hash=b"\x11" * 32,
            number=1000,
            state_root=b"\x22" * 32,
            extrinsics_root=b"\x33" * 32,
            digest=(
                DigestItem(kind=DigestItemKind.OTHER, data=b"other"),
                DigestItem(kind=DigestItemKind.CHANGES_TRIE_ROOT, data=b"\x44" * 32),
                DigestItem(kind=DigestItemKind.PRE_RUNTIME, engine_id=b"BABE", data=b"\x01\x02"),
                DigestItem(kind=DigestItemKind.CONSENSUS, engine_id=b"FRNK", data=b""),
                DigestItem(kind=DigestItemKind.SEAL, engine_id=b"BABE", data=b"\x05" * 64),
                DigestItem(kind=DigestItemKind.CHANGES_TRIE_SIGNAL, data=b"\x00\x01" + b"\x00" * 8),
            ),
        )

    def test_layout(self):
        raw = encode_header(self.header)
        assert raw[:32] == b"\x11" * 32
        assert raw[32:34] == encode_compact(1000)
        assert raw[34:66] == b"\x22" * 32
        assert raw[66:98] == b"\x33" * 32
        assert raw[98] == encode_compact(6)[0]

    def test_decode_restores_header(self):
        reader = ScaleReader(encode_header(self.header))
        assert decode_header(reader) == self.header
        reader.finish()

    def test_hash_depends_on_every_field(self):
        changed = self.header.model_copy(update={"state_root": b"\x00" * 32})
        assert changed.hash() != self.header.hash()
        assert len(self.header.hash()) == 32

    @pytest.mark.parametrize(
        "config, number",
        [
            (ChainConfig(), 1 << 64),
            (ChainConfig(block_number_bytes=4), 1 << 32),
            (ChainConfig(block_number_bytes=4), 1 << 40),
        ],
    )
    def test_number_wider_than_block_number(self, config, number):
        raw = encode_header(self.header.model_copy(update={"number": number}))
        with pytest.raises(CodecError):
            decode_header(ScaleReader(raw), config)

    def test_largest_number_accepted(self):
        config = ChainConfig(block_number_bytes=4)
        header = self.header.model_copy(update={"number": config.max_block_number})
        assert decode_header(ScaleReader(encode_header(header)), config).number == (1 << 32) - 1

    def test_unknown_digest_tag(self):
        raw = bytearray(encode_header(self.header.model_copy(update={"digest": ()})))
        raw[-1] = encode_compact(1)[0]
        raw += b"\x03"  # no digest item uses tag 3
        with pytest.raises(CodecError):
            decode_header(ScaleReader(bytes(raw)))

    def test_digest_item_layout_validated(self):
        with pytest.raises(ValueError):
            DigestItem(kind=DigestItemKind.SEAL, data=b"")
        with pytest.raises(ValueError):
            DigestItem(kind=DigestItemKind.CHANGES_TRIE_ROOT, data=b"short")


class TestJustificationSchema:
    """Field order of an encoded justification."""

    def test_field_order(self, honest):
        raw = encode_justification(honest.justification)
        commit = honest.justification.commit

        assert raw[:8] == (1).to_bytes(8, "little")
        assert raw[8:40] == commit.target_hash
        assert raw[40:48] == (1).to_bytes(8, "little")
        assert raw[48] == encode_compact(3)[0]

        first = commit.precommits[0]
        assert raw[49:81] == first.precommit.target_hash
        assert raw[81:89] == (2).to_bytes(8, "little")
        assert raw[89:153] == first.signature
        assert raw[153:185] == first.id

    def test_decode_matches_encoded(self, honest):
        raw = encode_justification(honest.justification)
        assert decode_justification(raw) == honest.justification

    def test_u32_block_numbers(self, honest):
        config = ChainConfig(block_number_bytes=4)
        raw = encode_justification(honest.justification, config)
        assert len(raw) == len(encode_justification(honest.justification)) - 4 * 4
        assert decode_justification(raw, config) == honest.justification

    @pytest.mark.parametrize("cut", [0, 1, 8, 47, 100])
    def test_truncation_rejected(self, honest, cut):
        raw = encode_justification(honest.justification)
        with pytest.raises(CodecError):
            decode_justification(raw[:cut])

    def test_trailing_bytes_rejected(self, honest):
        raw = encode_justification(honest.justification)
        with pytest.raises(CodecError):
            decode_justification(raw + b"\x00")

    def test_invalid_config_width(self):
        with pytest.raises(ValueError):
            ChainConfig(block_number_bytes=2)
