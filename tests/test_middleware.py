from hapikit.middleware import Middlewares


def _recording(calls, label):
    def middleware(ctx, following):
        calls.append(label)
        following(ctx)

    return middleware


def test_empty_chain_returns_endpoint_itself():
    def endpoint(ctx):
        pass

    assert Middlewares().handler(endpoint) is endpoint


def test_middlewares_run_in_order_before_endpoint():
    calls = []
    chain = Middlewares([_recording(calls, "first"), _recording(calls, "second")])
    handler = chain.handler(lambda ctx: calls.append(("endpoint", ctx)))
    handler("request")
    assert calls == ["first", "second", ("endpoint", "request")]


def test_middleware_can_stop_the_chain():
    calls = []

    def blocker(ctx, following):
        calls.append("blocked")

    chain = Middlewares([blocker, _recording(calls, "never")])
    chain.handler(lambda ctx: calls.append("endpoint"))("request")
    assert calls == ["blocked"]


def test_middleware_can_replace_context():
    seen = []

    def replace(ctx, following):
        following(ctx + "-changed")

    Middlewares([replace]).handler(seen.append)("request")
    assert seen == ["request-changed"]


def test_later_appends_do_not_affect_built_handler():
    calls = []
    chain = Middlewares([_recording(calls, "first")])
    handler = chain.handler(lambda ctx: calls.append("endpoint"))
    chain.append(_recording(calls, "late"))
    handler(None)
    assert calls == ["first", "endpoint"]