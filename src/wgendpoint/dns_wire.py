"""Minimal DNS wire-format codec for A/AAAA lookups.

Brief:
  Builds single-question DNS queries and pulls address records out of the
  matching responses. Only what endpoint resolution needs is supported: one
  question, class IN, A and AAAA answers.

Inputs:
  - Domain names and numeric record types.
  - Raw response datagrams.

Outputs:
  - Wire-format query bytes and lists of ipaddress objects.
"""

from __future__ import annotations

import ipaddress
import random
import struct
from dataclasses import dataclass
from typing import List, Union

from .errors import ResolutionError

QTYPE_A = 1
QTYPE_AAAA = 28
QCLASS_IN = 1

FLAGS_STANDARD_QUERY = 0x0100
HEADER_LEN = 12
RR_FIXED_LEN = 10

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class DNSWireError(ResolutionError):
    """
    Brief: Malformed or truncated DNS message.

    Inputs:
    - message: description

    Outputs:
    - Exception instance
    """

    pass


@dataclass(frozen=True)
class DnsAnswer:
    """Brief: One matching resource record lifted from a response.

    Inputs:
      - record_type: numeric RR type (1 for A, 28 for AAAA).
      - address: raw rdata bytes.

    Outputs:
      - DnsAnswer instance.
    """

    record_type: int
    address: bytes

    def to_ip(self) -> IPAddress:
        """Brief: Interpret the rdata as an IPv4/IPv6 address.

        Inputs:
          - None.

        Outputs:
          - ipaddress.IPv4Address or ipaddress.IPv6Address.

        Raises DNSWireError when the rdata length fits neither family.
        """

        try:
            return ipaddress.ip_address(self.address)
        except ValueError as e:
            raise DNSWireError(
                f"bad address rdata length {len(self.address)} for type {self.record_type}"
            ) from e


def _encode_name(domain: str) -> bytes:
    out = bytearray()
    for label in domain.rstrip(".").split("."):
        try:
            raw = label.encode("idna") if not label.isascii() else label.encode("ascii")
        except UnicodeError as e:
            raise DNSWireError(f"cannot encode label {label!r}: {e}") from e
        if not raw:
            raise DNSWireError(f"empty label in domain name: {domain!r}")
        if len(raw) > 63:
            raise DNSWireError(f"label too long in domain name: {domain!r}")
        out.append(len(raw))
        out += raw
    out.append(0)
    return bytes(out)


def build_query(domain: str, record_type: int) -> bytes:
    """
    Brief: Build a recursive single-question DNS query.

    Inputs:
    - domain: name to look up, e.g. "vpn.example.com"
    - record_type: numeric QTYPE (QTYPE_A or QTYPE_AAAA)

    Outputs:
    - bytes: header (random id, flags 0x0100, QDCOUNT=1) followed by the
      question section with class IN.

    Example:
        >>> q = build_query("example.com", QTYPE_A)
        >>> q[12:]
        b'\\x07example\\x03com\\x00\\x00\\x01\\x00\\x01'
    """
    txid = random.randint(0, 0xFFFF)
    header = struct.pack("!HHHHHH", txid, FLAGS_STANDARD_QUERY, 1, 0, 0, 0)
    question = _encode_name(domain) + struct.pack("!HH", record_type, QCLASS_IN)
    return header + question


def _skip_question_name(data: bytes, offset: int) -> int:
    while True:
        if offset >= len(data):
            raise DNSWireError("truncated question name")
        length = data[offset]
        if length == 0:
            return offset + 1
        if length & 0xC0 == 0xC0:
            if offset + 2 > len(data):
                raise DNSWireError("truncated name pointer")
            return offset + 2
        offset += 1 + length


def parse_answers(data: bytes, record_type: int) -> List[DnsAnswer]:
    """
    Brief: Walk the answer records of a response and collect those of one type.

    Inputs:
    - data: raw response datagram
    - record_type: QTYPE to keep; records of other types are skipped

    Outputs:
    - List[DnsAnswer] in wire order

    Notes:
    - Each record's owner name is assumed to be a two-byte compression
      pointer, which is what public resolvers send back for the echoed
      question name.
    - Any read past the end of the buffer raises DNSWireError.
    """
    if len(data) < HEADER_LEN:
        raise DNSWireError(f"short DNS header: {len(data)} bytes")

    offset = _skip_question_name(data, HEADER_LEN)
    if offset + 4 > len(data):
        raise DNSWireError("truncated question type/class")
    offset += 4

    answers: List[DnsAnswer] = []
    while len(data) - offset >= 2 + RR_FIXED_LEN:
        # 2-byte name pointer, then type/class/ttl/rdlength
        try:
            rtype, _rclass, _ttl, rdlength = struct.unpack_from(
                "!HHIH", data, offset + 2
            )
        except struct.error as e:  # pragma: no cover - guarded by loop condition
            raise DNSWireError(f"truncated resource record: {e}") from e
        offset += 2 + RR_FIXED_LEN
        if offset + rdlength > len(data):
            raise DNSWireError(
                f"rdata overruns message: need {rdlength} bytes at offset {offset}"
            )
        if rtype == record_type:
            answers.append(DnsAnswer(rtype, data[offset : offset + rdlength]))
        offset += rdlength
    return answers


def parse_response(data: bytes, record_type: int) -> List[IPAddress]:
    """
    Brief: Extract the addresses of the requested type from a DNS response.

    Inputs:
    - data: raw response datagram
    - record_type: QTYPE_A or QTYPE_AAAA

    Outputs:
    - List of ipaddress objects (possibly empty)

    Example:
        >>> parse_response(b"\\x00" * 5, QTYPE_A)
        Traceback (most recent call last):
        ...
        wgendpoint.dns_wire.DNSWireError: short DNS header: 5 bytes
    """
    return [a.to_ip() for a in parse_answers(data, record_type)]
