"""Property checks over arbitrary JSON payloads."""
from __future__ import annotations

from dataclasses import replace

from hypothesis import given, settings, strategies as st

from auditchain.crypto.chain import ChainBuilder
from auditchain.crypto.export import export_chain, load_chain
from auditchain.crypto.hasher import hash_entry, hash_genesis
from auditchain.crypto.verifier import ChainVerifier

from conftest import StepClock

json_values = st.recursive(
    st.none()
    | st.booleans()
    | st.integers()
    | st.floats(allow_nan=False, allow_infinity=False)
    | st.text(),
    lambda children: st.lists(children, max_size=4)
    | st.dictionaries(st.text(max_size=8), children, max_size=4),
    max_leaves=12,
)

payload_lists = st.lists(json_values, min_size=1, max_size=8)


def _chain(payloads):
    builder = ChainBuilder(clock=StepClock())
    chain = builder.create_chain(payloads[0])
    for payload in payloads[1:]:
        chain.append(builder.append(chain, payload))
    return chain


@settings(max_examples=60, deadline=None)
@given(payload_lists)
def test_hash_reproducible_from_visible_fields(payloads):
    chain = _chain(payloads)
    assert chain[0].hash == hash_genesis(chain[0].timestamp, chain[0].data)
    for entry in chain[1:]:
        assert entry.hash == hash_entry(
            entry.index, entry.timestamp, entry.previous_hash, entry.data
        )


@settings(max_examples=60, deadline=None)
@given(payload_lists, st.data())
def test_tamper_detected_at_or_before_index(payloads, data):
    chain = _chain(payloads)
    k = data.draw(st.integers(min_value=0, max_value=len(chain) - 1))
    chain[k] = replace(chain[k], data={"tampered": chain[k].data})

    result = ChainVerifier().verify(chain)
    assert not result.valid
    assert result.broken_at_index <= k


@settings(max_examples=60, deadline=None)
@given(payload_lists)
def test_export_round_trip_preserves_validity(payloads):
    chain = _chain(payloads)
    verifier = ChainVerifier()
    first = verifier.verify(chain)
    assert first.valid
    assert verifier.verify(chain) == first
    assert verifier.verify(load_chain(export_chain(chain))) == first
