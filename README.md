# vulnreach

`vulnreach` is a library that takes vulnerability records in the OSV
format and works out which of them affect a program. It works at three
levels: modules, imported packages and called symbols.

## What it does

- **Version matching**: `vulnreach.versions` compares semantic versions
  (`compare`, `less`) and turns Go release tags into semver with
  `go_tag_to_semver`. It checks whether a version falls inside OSV
  ranges (`affects`, `contains_semver`). `fixed_version` finds the
  earliest fix above a version that is not itself vulnerable.
- **Filtering**: `vulnreach.affecting.affecting_vulnerabilities` drops
  entries that are withdrawn, that belong to other modules, that do not
  apply to the module's version, or that do not match the target
  platform. `AffectingVulns.for_package` and `AffectingVulns.for_symbol`
  query what is left.
- **Package graph**: `vulnreach.graph.PackageGraph` keeps modules and
  packages by path and resolves each package to the module that owns it.
- **Call stacks**: `vulnreach.witness.source_callstacks` searches a
  call-graph slice (a `Result` of `FuncNode` and `CallSite` objects) for
  short, understandable call stacks that lead to each vulnerable symbol.
  `binary_callstacks` gives single-frame stacks for results that come
  from binaries.
- **Output**: `vulnreach.emit` sends OSV entries and findings
  (`Finding`, `Frame`) to a `Handler`. The base `Handler` collects them
  in its `osvs` and `findings` lists; a subclass may override `osv` and
  `finding` to send them elsewhere.
- **Fetching**: `vulnreach.fetch.VulnClient` is an in-memory database of
  entries, indexed by affected module. `fetch_vulnerabilities` asks it
  for the entries of a list of modules.
- **Scanning binaries**: `vulnreach.binary.scan_binary` ties the steps
  together for a `Bin`, which holds a program's modules, package
  symbols, Go version and platform. `Config.scan_level` (`ScanLevel`)
  chooses module, package or symbol precision.
- **File URLs**: `vulnreach.fileurl` converts between `file:` URLs and
  absolute paths (`url_to_file_path`, `url_from_file_path`), using POSIX
  or Windows rules; errors are raised as `FileURLError`.

## Example

```python
from vulnreach.binary import Bin, Config, ScanLevel, Symbol, scan_binary
from vulnreach.emit import Handler
from vulnreach.fetch import VulnClient
from vulnreach.models import Affected, EcosystemPackage, Entry, Module, Range, RangeEvent

entry = Entry(
    id="EXAMPLE-0001",
    affected=[
        Affected(
            module_path="example.com/amod",
            ranges=[Range(events=[RangeEvent(introduced="1.0.0"), RangeEvent(fixed="1.2.0")])],
            packages=[EcosystemPackage(path="example.com/amod/avuln", symbols=["VulnData.Vuln1"])],
        )
    ],
)
client = VulnClient([entry])

program = Bin(
    modules=[Module(path="example.com/amod", version="v1.1.3")],
    pkg_symbols=[Symbol(pkg="example.com/amod/avuln", name="VulnData.Vuln1")],
    go_version="go1.20",
    goos="linux",
    goarch="amd64",
)

handler = Handler()
scan_binary(handler, program, Config(scan_level=ScanLevel.SYMBOL), client)
for finding in handler.findings:
    print(finding.osv, finding.fixed_version, [frame.package for frame in finding.trace])
```

If a `Bin` has no `goos` or `goarch`, the scan prints a warning to
standard output and matches every platform.

## What it does not do

The package does not read binaries or source code itself: a `Bin` and a
call-graph `Result` must be built by the caller. It builds no call
graphs, downloads no vulnerability database (`VulnClient` only holds
entries it is given) and has no command-line tool.

## Installing and testing

```
pip install .
pip install ".[test]"
pytest
```