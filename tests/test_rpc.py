"""Tests for the Ardor and Alchemy HTTP clients."""

from unittest.mock import MagicMock

import pytest
import requests

from rpc import AlchemyClient, ArdorClient, NodeApplicationError, NodeConnectionError

def make_session(*bodies):
    """Session mock whose successive requests return the given JSON bodies"""
    session = MagicMock()
    responses = []
    for body in bodies:
        response = MagicMock()
        response.json.return_value = body
        responses.append(response)
    session.request.side_effect = responses
    return session

def ardor_client(session, max_retries=3):
    return ArdorClient('https://node.example.org/', api_path='/nxt', chain_id=2,
                       max_retries=max_retries, retry_delay=0, session=session)

def alchemy_client(session, max_retries=3):
    return AlchemyClient('https://polygon.example.org', 'key123', '0xcontract',
                         max_retries=max_retries, retry_delay=0, session=session)

def test_ardor_query_adds_chain():
    session = make_session({'trades': []})
    client = ardor_client(session)

    assert client.getTrades(asset='111', includeAssetInfo=True, firstIndex=0, lastIndex=None) == {'trades': []}

    args, kwargs = session.request.call_args
    assert args == ('GET', 'https://node.example.org/nxt')
    assert kwargs['params'] == {
        'requestType': 'getTrades',
        'chain': 2,
        'asset': '111',
        'includeAssetInfo': 'true',
        'firstIndex': 0,
    }
    assert kwargs['timeout'] == 30

def test_ardor_chainless_request_omits_chain():
    session = make_session({'assets': []})
    ardor_client(session).getAssetsByIssuer(account='ARDOR-4V3B-TVQA-Q6LF-GMH3T')

    params = session.request.call_args.kwargs['params']
    assert 'chain' not in params
    assert params['requestType'] == 'getAssetsByIssuer'

def test_timeouts_are_retried_until_exhausted():
    session = MagicMock()
    session.request.side_effect = requests.exceptions.Timeout("slow node")
    client = ardor_client(session, max_retries=2)

    with pytest.raises(NodeConnectionError) as exc_info:
        client.getBlockchainStatus()

    assert session.request.call_count == 3
    assert exc_info.value.method == 'getBlockchainStatus'

def test_retry_recovers_after_transient_failure():
    session = MagicMock()
    ok = MagicMock()
    ok.json.return_value = {'numberOfBlocks': 10}
    session.request.side_effect = [requests.exceptions.ConnectionError("reset"), ok]

    assert ardor_client(session).getBlockchainStatus() == {'numberOfBlocks': 10}
    assert session.request.call_count == 2

def test_application_errors_are_retried_and_raised():
    error = {'errorCode': 5, 'errorDescription': 'Unknown asset'}
    session = make_session(error, error)
    client = ardor_client(session, max_retries=1)

    with pytest.raises(NodeApplicationError) as exc_info:
        client.getAsset(asset='999')

    assert exc_info.value.code == 5
    assert 'Unknown asset' in str(exc_info.value)
    assert session.request.call_count == 2

def test_http_error_becomes_connection_error():
    session = MagicMock()
    response = MagicMock()
    response.raise_for_status.side_effect = requests.exceptions.HTTPError("503 Service Unavailable")
    session.request.return_value = response

    with pytest.raises(NodeConnectionError):
        ardor_client(session, max_retries=0).getBlockchainStatus()
    assert session.request.call_count == 1

def test_alchemy_nft_request():
    session = make_session({'nftSales': [], 'pageKey': None})
    client = alchemy_client(session)

    assert client.getNFTSales(order='desc', pageKey=None) == {'nftSales': [], 'pageKey': None}

    args, kwargs = session.request.call_args
    assert args == ('GET', 'https://polygon.example.org/nft/v2/key123/getNFTSales')
    assert kwargs['params'] == {'order': 'desc', 'contractAddress': '0xcontract'}

def test_alchemy_rpc_request():
    session = make_session({'jsonrpc': '2.0', 'id': 1, 'result': {'timestamp': '0x10'}})
    client = alchemy_client(session)

    assert client.eth_getBlockByNumber('0x1f4', False) == {'timestamp': '0x10'}

    args, kwargs = session.request.call_args
    assert args == ('POST', 'https://polygon.example.org/v2/key123')
    assert kwargs['json']['method'] == 'eth_getBlockByNumber'
    assert kwargs['json']['params'] == ['0x1f4', False]

def test_alchemy_rpc_error():
    session = make_session({'jsonrpc': '2.0', 'id': 1, 'error': {'code': -32602, 'message': 'invalid params'}})

    with pytest.raises(NodeApplicationError) as exc_info:
        alchemy_client(session, max_retries=0).alchemy_getAssetTransfers({'fromBlock': 'bad'})

    assert exc_info.value.code == -32602
