# wifidog

Building blocks for a captive-portal gateway, written in plain Python with
no third-party dependencies:

- `wifidog.server` – a small embedded HTTP server (`HttpServer`) that listens
  when it is created and maps request paths onto a tree of content
  directories (`ContentDir`, `ContentEntry`, `ContentKind`). Entries can be
  static text (with `$name` variables expanded), files on disk, wildcard
  directories or Python callables, and a custom not-found handler can be
  installed with `set_not_found_handler`. Access and error logs are written
  to any text stream given to `set_access_log` and `set_error_log`.
- `wifidog.request` – one client connection (`Request`): reading the request
  line and `Host`/`Authorization` headers, query-string variables
  (`Variable`), response status and headers, cookies, Basic authentication
  prompts and `$name` substitution in `output`. An unsupported method raises
  `RequestError`.
- `wifidog.acl` – IPv4 access-control lists built from CIDR blocks
  (`Acl`, `AclEntry`, `AclAction`, `AclError`, `scan_cidr`,
  `is_in_cidr_block`). A client that matches no rule is denied.
- `wifidog.httputil` – URL escaping and unescaping, Base64 decoding of
  credentials, path sanitising, query-string parsing and HTTP date strings.
- `wifidog.clients` – the lock-guarded list of connected gateway clients
  (`ClientList`, `Client`, `Counters`).
- `wifidog.jsonitem` and `wifidog.jsoncodec` – a lightweight JSON tree
  (`JsonItem`, `JsonType` and the `create_*` constructors) with a lenient
  parser (`parse`, `parse_with_opts`, raising `JsonParseError`), indented and
  compact printing (`print_item`, `print_unformatted`) and a
  comment-stripping `minify`.
- `wifidog.commandline` – the gateway's command-line options (`Options`,
  `parse_commandline`, `usage`, `UsageError`, `main`).

## Installing

```
pip install .
```

Python 3.10 or later is required.

## Command line

Installing the package provides the `wifidog` command:

```
wifidog -h
```

which prints:

```
Usage: wifidog [options]

  -c [filename] Use this config file
  -f            Run in foreground
  -d <level>    Debug level
  -s            Log to syslog
  -w <path>     Wdctl socket path
  -h            Print usage
  -v            Print version information
  -x pid        Used internally by WiFiDog when re-starting itself *DO NOT ISSUE THIS SWITCH MANUAlLY*
  -i <path>     Internal socket path used when re-starting self
```

`-h`, `-v` and unknown options print their text and exit with status 1.

From Python, `parse_commandline(argv, options)` takes the program name
first, returns a filled-in copy of `options` (its `restart_argv` holds the
arguments to repeat on a restart, leaving out `-f` and `-x`) and raises
`UsageError` for `-h`, `-v` and malformed command lines.

## Examples

JSON:

```python
from wifidog.jsoncodec import parse, print_unformatted

item = parse('{"gw_id": "default", "clients": [1, 2, 3]}')
print(len(item.get_object_item("clients")))   # 3
print(print_unformatted(item))
```

Object keys are looked up ignoring case.

The client list:

```python
from wifidog.clients import ClientList

clients = ClientList()
with clients.locked():
    client = clients.append("192.0.2.10", "00:00:5e:00:53:01", "token")
    assert clients.find_by_ip("192.0.2.10") is client
    clients.delete(client)
```

Access control:

```python
from wifidog.acl import Acl, AclAction

acl = Acl()
acl.add("192.0.2.0/24", AclAction.PERMIT)
acl.add("0.0.0.0/0", AclAction.DENY)
acl.match("192.0.2.7")     # AclAction.PERMIT
```

Pass an `Acl` to `HttpServer.set_default_acl` to have every connection
returned by `get_connection` checked first; a refused client is sent a 403
and `get_connection` returns None.

Serving a page:

```python
from wifidog.server import HttpServer

def hello(server, request):
    request.output("Hello $name\n")

with HttpServer("127.0.0.1", 0) as server:
    server.add_function_content("/", "hello", False, None, hello)
    request = server.get_connection(timeout=5)
    if request is not None:
        with request:
            request.read()
            server.process_request(request)
```

URL helpers:

```python
from wifidog.httputil import url_encode, unescape, sanitise_url

url_encode("a b/c")            # 'a+b/c'
unescape("a+b%2Fc")            # 'a b/c'
sanitise_url("/x//./y/../z")   # '/x/z'
```

## What this package does not do

- The `wifidog` command only parses and checks its options; it does not
  start a gateway, read a configuration file, or run in the background.
- There is no firewall control, no talking to an authentication server and
  no traffic counting: `ClientList` only keeps the clients and their
  counters as they are set.
- The HTTP server reads the request line and headers only; request bodies
  (POST data) are not read, and only query-string variables are stored.

## Tests

```
pip install .[test]
pytest
```