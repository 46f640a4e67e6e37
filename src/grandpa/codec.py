# src/grandpa/codec.py
"""
SCALE schema of GRANDPA justifications and Substrate headers.

    Justification {
      round:            u64
      commit: {
        target_hash:    H256
        target_number:  N
        precommits:     Vec<{
                           precommit: { target_hash: H256, target_number: N }
                           signature: [u8; 64]
                           id:        [u8; 32]
                        }>
      }
      votes_ancestries: Vec<Header>
    }

    Header {
      parent_hash:      H256
      number:           Compact<N>
      state_root:       H256
      extrinsics_root:  H256
      digest:           Vec<DigestItem>
    }

N is a fixed-width little-endian integer whose width comes from
ChainConfig.block_number_bytes. Header numbers are compact but bounded by
the same width. The primitives come from scalecodec (see helper.codec);
both directions must match the source chain's encoder byte for byte, and
the header hash is computed over encode_header().
"""
from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from grandpa.config import ChainConfig, DEFAULT_CHAIN_CONFIG
from grandpa.enums import DigestItemKind, GrandpaMessageKind
from grandpa.errors import CodecError
from grandpa.models import (
    Commit,
    DigestItem,
    GrandpaJustification,
    Header,
    Precommit,
    SignedPrecommit,
)
from helper.codec import (
    ScaleReader,
    encode_bytes,
    encode_compact,
    encode_seq,
    encode_uint,
)

HASH_SIZE = 32
SIGNATURE_SIZE = 64
AUTHORITY_ID_SIZE = 32
ENGINE_ID_SIZE = 4

_ENGINE_KINDS = (DigestItemKind.CONSENSUS, DigestItemKind.SEAL, DigestItemKind.PRE_RUNTIME)


# ----------------------------------------------------------------------
# Encoding
# ----------------------------------------------------------------------

def encode_digest_item(item: DigestItem) -> bytes:
    out = bytes([int(item.kind)])
    if item.kind == DigestItemKind.CHANGES_TRIE_ROOT:
        return out + item.data
    if item.kind == DigestItemKind.CHANGES_TRIE_SIGNAL:
        # already SCALE-encoded signal
        return out + item.data
    if item.kind in _ENGINE_KINDS:
        out += item.engine_id or b""
    return out + encode_bytes(item.data)


def encode_header(header: Header) -> bytes:
    return (
        header.parent_hash
        + encode_compact(header.number)
        + header.state_root
        + header.extrinsics_root
        + encode_seq(list(header.digest), encode_digest_item)
    )


def encode_precommit(precommit: Precommit, config: ChainConfig = DEFAULT_CHAIN_CONFIG) -> bytes:
    return precommit.target_hash + encode_uint(precommit.target_number, config.block_number_bytes)


def encode_vote_message(
    kind: GrandpaMessageKind,
    precommit: Precommit,
    config: ChainConfig = DEFAULT_CHAIN_CONFIG,
) -> bytes:
    """
    GRANDPA `Message` enum. Prevote, precommit and primary-propose share
    the (target_hash, target_number) layout.
    """
    return bytes([int(kind)]) + encode_precommit(precommit, config)


def encode_justification(
    justification: GrandpaJustification,
    config: ChainConfig = DEFAULT_CHAIN_CONFIG,
) -> bytes:
    commit = justification.commit

    def _signed(signed: SignedPrecommit) -> bytes:
        return encode_precommit(signed.precommit, config) + signed.signature + signed.id

    return (
        encode_uint(justification.round, 8)
        + commit.target_hash
        + encode_uint(commit.target_number, config.block_number_bytes)
        + encode_seq(list(commit.precommits), _signed)
        + encode_seq(list(justification.votes_ancestries), encode_header)
    )


# ----------------------------------------------------------------------
# Decoding
# ----------------------------------------------------------------------

def _read_changes_trie_signal(reader: ScaleReader) -> bytes:
    variant = reader.read_u8()
    if variant != 0:
        raise CodecError(f"unknown changes trie signal variant {variant}")
    if not reader.read_option_tag():
        return bytes([variant, 0])
    # ChangesTrieConfiguration { digest_interval: u32, digest_levels: u32 }
    return bytes([variant, 1]) + reader.read_fixed(8)


def decode_digest_item(reader: ScaleReader) -> DigestItem:
    tag = reader.read_u8()
    try:
        kind = DigestItemKind(tag)
    except ValueError:
        raise CodecError(f"unknown digest item tag {tag}") from None

    engine_id: Optional[bytes] = None
    if kind == DigestItemKind.CHANGES_TRIE_ROOT:
        data = reader.read_fixed(HASH_SIZE)
    elif kind == DigestItemKind.CHANGES_TRIE_SIGNAL:
        data = _read_changes_trie_signal(reader)
    else:
        if kind in _ENGINE_KINDS:
            engine_id = reader.read_fixed(ENGINE_ID_SIZE)
        data = reader.read_bytes()

    return DigestItem(kind=kind, engine_id=engine_id, data=data)


def decode_header(reader: ScaleReader, config: ChainConfig = DEFAULT_CHAIN_CONFIG) -> Header:
    parent_hash = reader.read_fixed(HASH_SIZE)
    number = reader.read_compact(max_bytes=config.block_number_bytes)
    if number > config.max_block_number:
        raise CodecError(f"header number {number} exceeds u{8 * config.block_number_bytes}")
    state_root = reader.read_fixed(HASH_SIZE)
    extrinsics_root = reader.read_fixed(HASH_SIZE)
    digest = reader.read_seq(decode_digest_item)
    return Header(
        parent_hash=parent_hash,
        number=number,
        state_root=state_root,
        extrinsics_root=extrinsics_root,
        digest=tuple(digest),
    )


def _decode_precommit(reader: ScaleReader, config: ChainConfig) -> Precommit:
    return Precommit(
        target_hash=reader.read_fixed(HASH_SIZE),
        target_number=reader.read_uint(config.block_number_bytes),
    )


def decode_justification(
    raw: bytes,
    config: ChainConfig = DEFAULT_CHAIN_CONFIG,
) -> GrandpaJustification:
    """
    Decode a justification, all or nothing.

    Raises CodecError on truncation, malformed framing, non-canonical
    compact integers, unknown digest tags or trailing bytes.
    """
    reader = ScaleReader(raw)

    def _signed(r: ScaleReader) -> SignedPrecommit:
        precommit = _decode_precommit(r, config)
        signature = r.read_fixed(SIGNATURE_SIZE)
        authority_id = r.read_fixed(AUTHORITY_ID_SIZE)
        return SignedPrecommit(precommit=precommit, signature=signature, id=authority_id)

    try:
        round_number = reader.read_uint(8)
        target_hash = reader.read_fixed(HASH_SIZE)
        target_number = reader.read_uint(config.block_number_bytes)
        precommits = reader.read_seq(_signed)
        ancestries = reader.read_seq(lambda r: decode_header(r, config))
        reader.finish()

        return GrandpaJustification(
            round=round_number,
            commit=Commit(
                target_hash=target_hash,
                target_number=target_number,
                precommits=tuple(precommits),
            ),
            votes_ancestries=tuple(ancestries),
        )
    except ValidationError as exc:
        # field widths are fixed by the reader, so this only fires on
        # values the models reject
        raise CodecError(f"decoded justification is invalid: {exc}") from exc
