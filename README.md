# scanstore

A small library that keeps JSON documents (plain Python dicts) on the file
system. Each document has a slash-separated key such as
`/spdx.softwarecomposition.kubescape.io/sbomspdxv2p3s/kubescape/toto`. The
store also writes a copy of every document with its `spec` removed, and it
sends change events to watchers.

## Modules

### `scanstore.storage`

`StorageImpl(root="/data")` stores each object at `<root>/<key>.json`. Next to
it goes a `<root>/<key>.metadata` file, which holds the same document in
compact form with every `spec` member removed.

- `create(key, obj)` writes the object and returns what was stored. It
  overwrites any object already at the key. It sets
  `metadata.resourceVersion` to `"1"`. If the object passed in already has a
  resource version, `create` raises `ValueError`.
- `get(key, ignore_not_found=False)` returns the stored object. If the key is
  missing it raises `KeyNotFoundError`, or returns `{}` when
  `ignore_not_found` is true.
- `delete(key)` removes both files and returns the object that was stored. If
  the key is missing it raises `KeyNotFoundError`.
- `get_list(key)` returns the metadata documents, without `spec`. When the
  key names a single object it returns that one. Otherwise it returns every
  object below the key, in lexical path order.
- `count(key)` returns 1 if the key names an object. Otherwise it returns the
  number of `.json` files below the key. If the path does not exist it raises
  `FileNotFoundError`.
- `guaranteed_update(key, ignore_not_found=False, preconditions=None,
  try_update=None, cached_existing_object=None)` works as follows:
  - It calls `try_update(current)` and writes the result.
  - If a cached object was given and either the preconditions or `try_update`
    fail on it, it reads the stored object and tries again.
  - It returns the written object.
- `get_by_namespace(api_version, kind, namespace)` returns every stored
  object under `<api_version>/<kind>/<namespace>`.
- `get_by_cluster(api_version, kind)` returns every stored object under
  `<api_version>/<kind>` that lies in a namespace directory.
- `watch(key)` returns a `Watcher` for the key.

The module also provides:

- `APIObjectVersioner` reads and writes `metadata.resourceVersion`.
- `Preconditions(uid=None, resource_version=None)` checks an object's UID and
  resource version. If either does not match, it raises `PreconditionError`.
- `remove_spec(data)` strips `spec` members from a JSON text. The match on
  the member name ignores case.
- `get_namespace_from_key(key)` returns the third part of a
  `/group/resource/namespace` key, or `""` if the key does not have that
  shape.

### `scanstore.watch`

A `Watcher` that is registered on a key receives events for that key and for
every key below it.

- `Watcher.get(timeout=None)` returns the next `Event`. It returns `None` on
  timeout or after the watcher has been stopped.
- Iterating over a watcher yields events until it is stopped.
- Using a watcher as a context manager stops it on exit.

An `Event` carries a `type` and an `obj`. The `type` is one of
`EventType.ADDED`, `EventType.MODIFIED` or `EventType.DELETED`.

`WatchDispatcher` registers watchers with `register(key, watcher)` and sends
events with `added`, `modified` and `deleted`. Events are delivered at once,
in the calling thread.

`extract_keys_to_notify(key)` returns the root `/`, every ancestor key, and
the key itself. If the key does not start with `/` it raises
`InvalidKeyError`.

### `scanstore.configsummary`

`ConfigurationScanSummaryStorage(real_store)` is a read-only view over a
`StorageImpl`. It reads the stored workload configuration scan summaries
(resource `workloadconfigurationscansummaries`) and builds configuration scan
summaries from them when asked.

- `get(key)` returns one summary for the namespace named by the key. It adds
  up the `critical`, `high`, `medium`, `low` and `unknown` counts and lists
  the workloads under `spec.summaryRef`. If there are no workload summaries
  in that namespace it raises `KeyNotFoundError`.
- `get_list(key)` returns a list document whose `items` hold one summary per
  namespace.
- `create`, `delete`, `watch`, `guaranteed_update` and `count` raise
  `InvalidObjectError` ("operation not supported").

The building functions are also available directly:
`build_configuration_scan_summary(summaries, namespace)` and
`build_configuration_scan_summary_for_cluster(summaries)`.

### `scanstore.serializer`

`NoProtobufSerializer(original)` wraps any object that has a
`supported_media_types()` method.

- Its `supported_media_types()` leaves out entries whose `media_type` is
  `application/vnd.kubernetes.protobuf`.
- Any other attribute access is passed on to the wrapped object.
- `SerializerInfo` describes one media type.

### `scanstore.registry`

`rest_in_peace(factory, *args, **kwargs)` calls the factory and returns what
it built. If the factory fails, it raises `RuntimeError`, chained to the
original exception.

### `scanstore.errors`

`StorageError` is the base class of `KeyNotFoundError`,
`InvalidObjectError`, `InternalError` and `InvalidKeyError`.
`PreconditionError` is a subclass of `InvalidObjectError`.
`InvalidKeyError` is also a `ValueError`.

## Example

```python
from scanstore.storage import StorageImpl

store = StorageImpl("/tmp/scanstore")
watcher = store.watch("/spdx.softwarecomposition.kubescape.io/sbomspdxv2p3s/kubescape")

created = store.create(
    "/spdx.softwarecomposition.kubescape.io/sbomspdxv2p3s/kubescape/toto",
    {"metadata": {"name": "toto"}},
)
print(created["metadata"]["resourceVersion"])  # "1"

event = watcher.get(timeout=1.0)
print(event.type.value)  # "ADDED"

print(store.count("/spdx.softwarecomposition.kubescape.io"))  # 1
```

## What it does not do

scanstore is a library only:

- It serves no HTTP API and has no command-line program. A caller works with
  the stores directly from Python.
- The only summaries it builds on the fly are configuration scan summaries.
- The dispatcher never forgets a watcher, even after the watcher has been
  stopped.

## Running the tests

```
pip install -e ".[test]"
pytest
```