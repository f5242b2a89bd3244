# webtestkit

Building blocks for browser tests: WebDriver capabilities, browser metadata
files, runfiles lookup in a Bazel test environment, and a few process, port and
HTTP helpers. It has no dependencies beyond the standard library.

## Modules

- `webtestkit.capabilities`: the `Capabilities` dataclass (`always_match`,
  `first_match`, `w3c_supported`).
  - `Capabilities.from_new_session_args` reads the arguments of a New Session
    request and raises `CapabilitiesError` on conflicts.
  - `merge_over` and `merge_under` combine capabilities with another map.
  - `to_w3c`, `to_jwp` and `to_mixed_mode` write New Session arguments.
  - `strip`, `strip_all_prefixed_except` and `resolve` return changed copies.
  - The module functions are `normalize`, `denormalize_w3c`, `denormalize_jwp`,
    `can_reuse_session` and `mixed_mode_args`.
- `webtestkit.capmerge`: `merge`, a deep merge of capability maps. It
  concatenates lists and treats `args` lists as command-line options, so a later
  option replaces an earlier one and `REMOVE:--name` drops one. The module also
  resolves `%PREFIX:NAME%` variables with `resolve_string` and `resolve_value`,
  using `no_op_resolver` and `map_resolver`. `ResolveError` is raised for names
  it cannot resolve.
- `webtestkit.metadata`: the `Metadata` dataclass for a browser configuration.
  - `from_file` and `from_bytes` read it from JSON.
  - `merge` combines two `Metadata`, with the second taking precedence.
  - `Metadata.to_file` and `Metadata.to_bytes` write it back.
  - `Metadata.get_file_path` finds a named file.
  - `Metadata.resolver` resolves `ENV:`, `FILE:`, `WTL:FQDN` and `METADATA:`
    variables.
  - Extra fields are read into an `Extension`; the default is `MapExtension`.
- `webtestkit.webtestfiles`: `WebTestFiles` are named files in the runfiles tree
  or inside an archive. The archive is extracted once, on demand, with the
  program named `EXTRACT_EXE`. The module also has `merge_named_files`,
  `merge_web_test_files` and `normalize_web_test_files`.
- `webtestkit.errors`: `WtlError` tags an error with a component name and a
  "permanent" flag, and `MultiError` holds several errors. The module functions
  are `new`, `new_permanent`, `component`, `is_permanent` and `join_errors`.
- `webtestkit.bazel`: `runfile`, `runfiles_path`, `runfiles_manifest`,
  `test_workspace`, `test_tmp_dir` and `new_tmp_dir`.
- `webtestkit.portpicker`: `pick_unused_port` and `recycle_unused_port`.
- `webtestkit.cmdhelper`: `update_env`, `bulk_update_env` and `is_truthy_env`.
- `webtestkit.httphelper`:
  - `construct_url` joins a trimmed request path onto a base URL.
  - `forward` sends a request to a host and returns a `ForwardedResponse` that
    carries the default WebDriver headers.
  - `get` fetches a URL.
  - `set_default_response_headers` sets those default headers on a header map.
  - `fqdn` returns the host's fully-qualified name, or `localhost`.

## Installing

```
pip install webtestkit
```

For the tests:

```
pip install "webtestkit[test]"
pytest
```

## Examples

Merging capability maps:

```python
from webtestkit.capmerge import merge

merge({"args": ["--width=1024"]}, {"args": ["--width=2048"]})
# {'args': ['--width=2048']}
```

Reading New Session arguments and writing them out for a JWP remote end:

```python
from webtestkit.capabilities import Capabilities

caps = Capabilities.from_new_session_args(
    {"desiredCapabilities": {"chromeOptions": {"args": ["--headless"]}}}
)
caps.to_jwp()
# {'desiredCapabilities': {'chromeOptions': {'args': ['--headless']},
#                          'goog:chromeOptions': {'args': ['--headless']}}}
```

Merging metadata:

```python
from webtestkit import metadata

base = metadata.from_bytes(b'{"environment": "local", "browserLabel": "//browsers:chrome"}')
override = metadata.from_bytes(b'{"environment": "sauce"}')
merged = metadata.merge(base, override)
merged.environment    # 'sauce'
merged.browser_label  # '//browsers:chrome'
```

Tagging errors by component:

```python
from webtestkit import errors

err = errors.new("proxy", "connection refused")
str(err)               # '[proxy]: connection refused'
errors.component(err)  # 'proxy'
```

## What it does not do

This package has no WebDriver client: it does not open browser sessions or run
scripts in a browser. It does not map errors to WebDriver status codes. It does
not poll components until they are healthy. It ships no command-line program,
so merging metadata files means calling `webtestkit.metadata.merge` from your
own code.