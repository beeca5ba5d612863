# tests/codec/test_codec.py
import unittest
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple
from bencodec import (
    ArrayOverflowError, BencodeError, MalformedLengthError, NestingTooDeepError, NotAReferenceError,
    Ref, TruncatedBufferError, TypeMismatchError, UnsupportedKeyTypeError, UnsupportedTypeError,
    bencode_field, decode, encode, marshal, unmarshal,
)

class Timestamp:
    """Wraps a datetime, encoded as whole seconds since the epoch"""
    def __init__(self, moment: Optional[datetime] = None):
        self.moment = moment or datetime.fromtimestamp(0, tz=timezone.utc)

    def __eq__(self, other):
        return isinstance(other, Timestamp) and self.moment == other.moment

    def __repr__(self):
        return f"Timestamp({self.moment.isoformat()})"

    def to_bencode(self) -> bytes:
        return marshal(int(self.moment.timestamp()))

    @classmethod
    def from_bencode(cls, data: bytes):
        seconds = Ref(int)
        consumed = unmarshal(data, seconds)
        return cls(datetime.fromtimestamp(seconds.value, tz=timezone.utc)), consumed

class Greedy:
    """Claims more bytes than it was given"""
    @classmethod
    def from_bencode(cls, data: bytes):
        return cls(), len(data) + 1

@dataclass
class Person:
    age: int = 0
    name: str = ''

@dataclass
class Sample:
    people: List[Person] = field(default_factory=list)
    thing: bytes = bencode_field('thing', default=b'')
    double: List[List[int]] = field(default_factory=list)
    length: int = 0
    created: Optional[Timestamp] = None

@dataclass
class Event:
    title: str = ''
    at: Timestamp = field(default_factory=Timestamp)

@dataclass
class Announce:
    info_hash: bytes = b''
    port: int = bencode_field(omitempty=True, default=0)
    tracker_id: str = bencode_field('trackerid', omitempty=True, default='')
    secret: str = bencode_field(omit=True, default='hidden')
    _cache: Dict[str, int] = field(default_factory=dict)

@dataclass
class Broken:
    at: Greedy = None

@dataclass(frozen=True)
class Point:
    x: int = 0
    y: int = 0

class RawInfo:
    """Keeps the exact input bytes of a dictionary, as info-hash code needs"""
    def __init__(self, raw: bytes = b''):
        self.raw = raw

    @classmethod
    def from_bencode(cls, data: bytes):
        consumed = unmarshal(data, Ref())
        return cls(bytes(data[:consumed])), consumed

@dataclass
class Meta:
    info: Optional[RawInfo] = None

@dataclass
class Outer:
    meta: Meta = field(default_factory=Meta)

@dataclass
class Catalog:
    metas: List[Meta] = field(default_factory=list)

@dataclass(frozen=True)
class FrozenMeta:
    info: Optional[RawInfo] = None

@dataclass
class Numbers:
    values: List[int] = bencode_field('list', default_factory=list)

NEW_YEAR = datetime(2020, 1, 1, tzinfo=timezone.utc)

SAMPLE = Sample(
    people=[Person(32, 'John'), Person()],
    thing=b'Some bytes',
    double=[[1, 2], [], [3]],
    length=10,
    created=Timestamp(NEW_YEAR),
)

SAMPLE_BYTES = (
    b'd7:createdi1577836800e6:doublelli1ei2eeleli3eee6:lengthi10e'
    b'6:peopleld3:agei32e4:name4:Johned3:agei0e4:name0:ee5:thing10:Some bytese'
)

class TestDecode(unittest.TestCase):
    def test_decode_string(self):
        self.assertEqual(decode(b'4:spam'), b'spam')
        self.assertEqual(decode(b'0:'), b'')
        self.assertEqual(decode(b'4:spam', str), 'spam')

    def test_decode_integer(self):
        self.assertEqual(decode(b'i3e'), 3)
        self.assertEqual(decode(b'i-5e'), -5)
        self.assertEqual(decode(b'i0e'), 0)

    def test_decode_list(self):
        self.assertEqual(decode(b'l4:spam4:eggse'), [b'spam', b'eggs'])
        self.assertEqual(decode(b'le'), [])
        self.assertEqual(decode(b'li1ei2ei3ee'), [1, 2, 3])

    def test_decode_dict(self):
        self.assertEqual(decode(b'd3:cow3:moo4:spam4:eggse'), {'cow': b'moo', 'spam': b'eggs'})
        self.assertEqual(decode(b'de'), {})
        self.assertEqual(decode(b'd4:spaml1:a1:bee'), {'spam': [b'a', b'b']})

    def test_decode_nested(self):
        data = b'd4:dictd3:key5:value4:listl1:a1:bee5:hello5:worlde'
        expected = {
            'dict': {'key': b'value', 'list': [b'a', b'b']},
            'hello': b'world'
        }
        self.assertEqual(decode(data), expected)

    def test_decode_typed(self):
        self.assertEqual(decode(b'd3:agei10e4:name4:Johne', Person), Person(10, 'John'))
        self.assertEqual(decode(b'l1:a1:be', List[str]), ['a', 'b'])

    def test_invalid_bencode(self):
        with self.assertRaises(ValueError):
            decode(b'i123')  # Unterminated integer

        with self.assertRaises(ValueError):
            decode(b'l123')  # Unterminated list

        with self.assertRaises(ValueError):
            decode(b'd3:keyvalue')  # Invalid dictionary format

        with self.assertRaises(ValueError):
            decode(b'3:ab')  # String too short

        with self.assertRaises(ValueError):
            decode(b'i03e')  # Invalid integer format (leading zeros)

    def test_space_is_not_an_empty_dictionary(self):
        with self.assertRaises(MalformedLengthError):
            decode(b'd e')

    def test_trailing_data(self):
        with self.assertRaises(BencodeError) as context:
            decode(b'i1ei2e')
        self.assertEqual(context.exception.offset, 3)

    def test_empty_and_text_input(self):
        with self.assertRaises(TruncatedBufferError):
            decode(b'')
        with self.assertRaises(TypeError):
            decode('i1e')

class TestEncode(unittest.TestCase):
    def test_encode_string(self):
        self.assertEqual(encode('spam'), b'4:spam')
        self.assertEqual(encode(''), b'0:')
        self.assertEqual(encode('é'), b'2:\xc3\xa9')

    def test_encode_integer(self):
        self.assertEqual(encode(3), b'i3e')
        self.assertEqual(encode(-3), b'i-3e')
        self.assertEqual(encode(0), b'i0e')
        self.assertEqual(encode(True), b'i1e')

    def test_encode_list(self):
        self.assertEqual(encode(['spam', 'eggs']), b'l4:spam4:eggse')
        self.assertEqual(encode([]), b'le')
        self.assertEqual(encode([1, 2, 3]), b'li1ei2ei3ee')

    def test_encode_dict(self):
        self.assertEqual(encode({'cow': 'moo', 'spam': 'eggs'}), b'd3:cow3:moo4:spam4:eggse')
        self.assertEqual(encode({}), b'de')

    def test_encode_nested(self):
        data = {
            'dict': {'key': 'value', 'list': ['a', 'b']},
            'hello': 'world'
        }
        expected = b'd4:dictd3:key5:value4:listl1:a1:bee5:hello5:worlde'
        self.assertEqual(encode(data), expected)

    def test_key_order(self):
        self.assertEqual(marshal({'b': 1, 'a': 1, 'hello': 1}), b'd1:ai1e1:bi1e5:helloi1ee')
        self.assertEqual(marshal({'hello': 1, 'b': 1, 'a': 1}), b'd1:ai1e1:bi1e5:helloi1ee')

    def test_byte_sequence_is_a_string(self):
        self.assertEqual(marshal(bytes([0x53, 0x6f, 0x6d, 0x65])), b'4:Some')
        self.assertEqual(marshal(bytearray(b'Some')), b'4:Some')

    def test_record(self):
        self.assertEqual(marshal(Person(10, 'John')), b'd3:agei10e4:name4:Johne')
        self.assertEqual(marshal(SAMPLE), SAMPLE_BYTES)

    def test_omitempty(self):
        self.assertEqual(marshal(Announce(b'abc')), b'd9:info_hash3:abce')
        self.assertEqual(marshal(Announce(b'abc', 6881, 'x')),
                         b'd9:info_hash3:abc4:porti6881e9:trackerid1:xe')

    def test_omit_and_private_fields(self):
        encoded = marshal(Announce(b'', secret='s3cret', _cache={'a': 1}))
        self.assertEqual(encoded, b'd9:info_hash0:e')

    def test_none_field_is_left_out(self):
        self.assertEqual(marshal(Sample(created=None)),
                         b'd6:doublele6:lengthi0e6:peoplele5:thing0:e')

    def test_hook_values(self):
        self.assertEqual(marshal(Timestamp(NEW_YEAR)), b'i1577836800e')
        self.assertEqual(marshal([Timestamp(NEW_YEAR)]), b'li1577836800ee')

    def test_reference_is_dereferenced(self):
        self.assertEqual(marshal(Ref(int, 5)), b'i5e')
        self.assertEqual(marshal([Ref(value='a')]), b'l1:ae')

    def test_unsupported_types(self):
        for value in (complex(0, 0), 1.5, None, {1, 2}, object(), Ref(), 2 ** 63, [complex(0, 0)],
                      {'complex': complex(0, 0)}):
            with self.subTest(value=value):
                with self.assertRaises(UnsupportedTypeError):
                    marshal(value)

    def test_unsupported_key_type(self):
        with self.assertRaises(UnsupportedKeyTypeError):
            marshal({0: 0})

class TestUnmarshal(unittest.TestCase):
    def test_record_scenario(self):
        person = Person()
        consumed = unmarshal(b'd3:agei10e4:name4:Johne', person)
        self.assertEqual(consumed, 23)
        self.assertEqual(person, Person(age=10, name='John'))
        self.assertEqual(marshal(person), b'd3:agei10e4:name4:Johne')

    def test_into_reference(self):
        ref = Ref(Person)
        unmarshal(b'd3:agei10e4:name4:Johne', ref)
        self.assertEqual(ref.value, Person(10, 'John'))

    def test_generic_reference(self):
        ref = Ref()
        data = b'd3:keyi10e5:value9:something5:thingli11ei12ei13eee'
        self.assertEqual(unmarshal(data, ref), len(data))
        self.assertEqual(ref.value, {'key': 10, 'value': b'something', 'thing': [11, 12, 13]})

    def test_into_mapping(self):
        result = {}
        unmarshal(b'd1:ai1e1:bl1:xee', result)
        self.assertEqual(result, {'a': 1, 'b': [b'x']})

    def test_into_list(self):
        result = [0]
        self.assertEqual(unmarshal(b'li1e1:ae', result), 8)
        self.assertEqual(result, [0, 1, b'a'])

    def test_into_bytearray(self):
        result = bytearray(b'old')
        unmarshal(b'4:Some', result)
        self.assertEqual(result, bytearray(b'Some'))

    def test_consumes_only_the_first_value(self):
        self.assertEqual(unmarshal(b'i1ei2e', Ref(int)), 3)

    def test_sample_round_trip(self):
        sample = Sample()
        self.assertEqual(unmarshal(SAMPLE_BYTES, sample), len(SAMPLE_BYTES))
        self.assertEqual(sample, SAMPLE)

    def test_hook_field_reads_raw_bytes(self):
        event = Event()
        data = b'd2:ati1577836800e5:title5:partye'
        self.assertEqual(unmarshal(data, event), len(data))
        self.assertEqual(event, Event('party', Timestamp(NEW_YEAR)))
        self.assertEqual(marshal(event), data)

    def test_hook_must_report_a_valid_length(self):
        with self.assertRaises(BencodeError) as context:
            unmarshal(b'd2:ati1ee', Broken())
        self.assertEqual(context.exception.offset, 5)

    def test_unknown_keys_are_dropped(self):
        person = Person()
        unmarshal(b'd3:agei1e5:extrad1:xli1eee4:name1:Ze', person)
        self.assertEqual(person, Person(1, 'Z'))

    def test_omitted_field_is_not_decoded(self):
        announce = Announce()
        unmarshal(b'd4:porti1e6:secret3:bade', announce)
        self.assertEqual(announce.port, 1)
        self.assertEqual(announce.secret, 'hidden')

    def test_type_mismatch_reports_offset(self):
        with self.assertRaises(TypeMismatchError) as context:
            unmarshal(b'd4:namel1:aee', Person())
        self.assertEqual(context.exception.offset, 7)

    def test_wrong_container_for_destination(self):
        with self.assertRaises(TypeMismatchError):
            unmarshal(b'i1e', {})
        with self.assertRaises(TypeMismatchError):
            unmarshal(b'de', [])

    def test_not_a_reference(self):
        for destination in (5, 'x', b'x', None, (1,), Point()):
            with self.subTest(destination=destination):
                with self.assertRaises(NotAReferenceError):
                    unmarshal(b'i1e', destination)

    def test_frozen_record_through_reference(self):
        ref = Ref(Point)
        unmarshal(b'd1:xi1e1:yi2ee', ref)
        self.assertEqual(ref.value, Point(1, 2))

class TestNestedDecoding(unittest.TestCase):
    INFO = b'd1:bi1e1:ai2ee'  # keys not in canonical order

    def test_hook_on_top_level_record(self):
        meta = Meta()
        unmarshal(b'd4:info' + self.INFO + b'e', meta)
        self.assertEqual(meta.info.raw, self.INFO)

    def test_hook_inside_nested_record(self):
        outer = Outer()
        data = b'd4:metad4:info' + self.INFO + b'ee'
        self.assertEqual(unmarshal(data, outer), len(data))
        self.assertEqual(outer.meta.info.raw, self.INFO)

    def test_hook_inside_list_of_records(self):
        catalog = decode(b'd5:metasld4:info' + self.INFO + b'eee', Catalog)
        self.assertEqual(len(catalog.metas), 1)
        self.assertEqual(catalog.metas[0].info.raw, self.INFO)

    def test_hook_inside_frozen_record(self):
        ref = Ref(FrozenMeta)
        unmarshal(b'd4:info' + self.INFO + b'e', ref)
        self.assertEqual(ref.value.info.raw, self.INFO)

    def test_element_mismatch_reports_element_offset(self):
        with self.assertRaises(TypeMismatchError) as context:
            unmarshal(b'd4:listli1e1:xee', Numbers())
        self.assertEqual(context.exception.offset, 11)

    def test_array_overflow_reports_extra_element(self):
        with self.assertRaises(ArrayOverflowError) as context:
            decode(b'li1ei2ei3ee', Tuple[int, int])
        self.assertEqual(context.exception.offset, 7)

    def test_optional_record_reports_inner_mismatch(self):
        with self.assertRaises(TypeMismatchError) as context:
            decode(b'd3:agel1:xee', Optional[Person])
        self.assertEqual(context.exception.offset, 6)

    def test_deep_nesting_is_a_codec_error(self):
        data = b'l' * 5000 + b'e' * 5000
        with self.assertRaises(NestingTooDeepError) as context:
            decode(data)
        self.assertIsNotNone(context.exception.offset)
        with self.assertRaises(NestingTooDeepError):
            unmarshal(data, [])

    def test_deep_nesting_on_encode(self):
        nested = []
        for _ in range(5000):
            nested = [nested]
        with self.assertRaises(UnsupportedTypeError):
            marshal(nested)

class TestRoundTrip(unittest.TestCase):
    def test_map_round_trip(self):
        m = {
            'a': 1,
            'b': 100,
            'hello': ['world', 'or', 'John'],
            'map': {'something': {'very': 'complex'}},
            'person': Person(32, 'John'),
        }
        b = marshal(m)
        m2 = {}
        self.assertEqual(unmarshal(b, m2), len(b))
        self.assertEqual(marshal(m2), b)

    def test_record_to_mapping_and_back(self):
        generic = {}
        unmarshal(SAMPLE_BYTES, generic)
        self.assertEqual(marshal(generic), SAMPLE_BYTES)
        self.assertEqual(decode(marshal(generic), Sample), SAMPLE)

    def test_non_utf8_keys_survive(self):
        data = b'd1:ai2e2:\xff\xfei1ee'
        self.assertEqual(marshal(decode(data)), data)

if __name__ == '__main__':
    unittest.main()
