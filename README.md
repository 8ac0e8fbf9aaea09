# webcfgsync

Building blocks for a device that pulls configuration documents from a
configuration server and applies them.

The server answers a sync request with a `multipart/mixed` body. Each part is
one sub-document, for example `lan` or `mesh`. A part carries a namespace, an
etag (its version) and a msgpack payload holding a `parameters` array. The
package covers each step of handling such a body.

## Modules

- `webcfgsync.headers` builds the request header lines with
  `build_sync_headers`. The lines cover authorization, `IF-NONE-MATCH`
  versions on a primary sync, supported docs and schema version, the device
  description from a `DeviceInfo`, status, current time and transaction id.
  The function returns the lines and the transaction id. A new id is
  generated when none is given. `SyncHeaderState.handle_header` records the
  `Etag` (primary sync only) and `Content-Length` response headers.
  `SyncHeaderState.root_version` returns the Etag as a 32-bit number.
- `webcfgsync.multipart` handles the response body:
  - `parse_boundary` reads the boundary from the content type.
  - `split_parts` splits the body into part bodies.
  - `parse_subdoc` parses one part into a `MultipartDoc`.
  - `parse_multipart_document` does all of this into a thread-safe
    `MultipartCache` and returns the documents added plus the namespaces of
    incomplete parts.
  - `validate_request_params` checks that parameter names and values are
    non-empty and that names are short enough.
  - Failures raise `MultipartError`. Its `code` is a
    `webcfgsync.notify.WebcfgErrorCode` where one applies.
- `webcfgsync.param` decodes a sub-document payload into a `ParamDocument` of
  `Param` entries (`name`, `value`, `value_size`, `type`) with
  `decode_params`. A malformed payload raises `ParamError`. `strerror`
  describes a `ParamErrorCode`.
- `webcfgsync.helpers` contains the generic msgpack step used by `param`:
  - `convert` decodes the first object, which must be a map, and optionally
    unwraps a key of an expected `ObjectType`.
  - `find_wrapper` and `object_type` are the pieces it uses.
  - Failures raise `ConversionError`.
- `webcfgsync.versions` covers root and document versions:
  - `config_doc_list` and `config_version_list` produce the document name
    list and the version list for the server.
  - `derive_root_version` works out the root version (a number, or a string
    such as `NONE`, `NONE-MIGRATION`, `NONE-REBOOT` or `POST-NONE`) from the
    reboot reason and the stored state.
  - `check_root_delete`, `check_root_update` and `docs_to_retry` inspect a
    list of `TmpDoc` entries.
- `webcfgsync.pack` serialises stored records to msgpack:
  - `pack_db` writes `DocRecord` entries under `webcfgdb`.
  - `pack_blob` writes stored records together with unfinished `PendingDoc`
    entries under `webcfgblob`.
- `webcfgsync.notify` handles status reports:
  - `Notifier` queues reports and turns them into a JSON payload, a source
    (`mac:<device mac>`) and a destination.
  - Reports are delivered through your send callable, either on demand with
    `process_pending` or from a background thread with `start` and
    `shutdown`.
  - `error_code_and_message` maps a `WebcfgErrorCode` to its numeric code and
    message.
- `webcfgsync.textutil` holds small utilities:
  - `replace_mac_word` substitutes `{mac}` in URLs.
  - `strip_spaces` cleans up header values.
  - `read_properties_value`, `load_init_url` and `load_interface` read
    `KEY=value` entries from a properties file.
  - `read_file` reads a file.
  - `generate_transaction_id` creates a transaction id.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Example

```python
from webcfgsync.multipart import MultipartCache, parse_multipart_document
from webcfgsync.param import decode_params

cache = MultipartCache()
added, rejected = parse_multipart_document(
    body, "multipart/mixed; boundary=example-boundary", cache, False
)
for doc in cache:
    params = decode_params(doc.data)
    for param in params.entries:
        print(doc.name_space, doc.etag, param.name, param.type)
```

Here `body` is the raw response body as `bytes`.

Notifications go through a `Notifier`. It takes the device MAC address (or a
callable returning it) and a callable that receives
`(payload, source, destination)`:

```python
from webcfgsync.notify import Notifier

def send(payload, source, destination):
    print(destination, payload)

notifier = Notifier("aabbccddeeff", send)
notifier.add("lan", 123, "success", "none", "abc-123", 0, "status", 0, None, 200)
notifier.process_pending()
```

When no MAC address is known, nothing is sent.

## What this package does not do

The package provides pieces, not a running agent. It makes no HTTP requests
and does not store the document database on disk. It does not apply
parameters to device components, and it does not transport notifications
itself. It also provides no command-line program. The caller supplies those
parts: for example, an HTTP client that sends the headers from
`build_sync_headers`, and a `send` callable for the `Notifier`.