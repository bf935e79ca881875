# ossim

`ossim` simulates a tiny operating system: a set of CPUs driven by a shared
slot clock, a multi-level priority queue scheduler, and a paged virtual
memory system backed by a RAM device and four swap devices. Processes are
small programs made of `calc`, `alloc`, `free`, `read`, `write` and
`syscall` instructions.

It has no dependencies outside the standard library.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Running a simulation

```
ossim CONFIG
```

`CONFIG` names a file inside the `input/` directory of the current working
directory, and program files are looked up by name in `input/proc/`. The
command exits with status 1 on a wrong number of arguments or when the
configuration or a program file is missing or malformed.

The simulator prints each time slot, every dispatch, preemption and finished
process, and it prints page tables and physical memory as processes allocate,
free, read and write memory. An instruction that fails (an unknown region, no
free frame left, and so on) is skipped and the process carries on.

### Configuration file

```
TIME_SLOT NUM_CPUS NUM_PROCESSES
RAM_SIZE
SWAP0_SIZE SWAP1_SIZE SWAP2_SIZE SWAP3_SIZE
START_TIME PROCESS_NAME PRIORITY
...
```

There is one `START_TIME PROCESS_NAME PRIORITY` line per process. A process
is loaded once the clock reaches its start time. Priorities run from 0 to
139, and lower numbers are scheduled first. Memory is split into frames of
256 bytes.

### Process description

```
PRIORITY NUM_INSTRUCTIONS
calc
alloc SIZE REGION
free REGION
read REGION OFFSET DEST
write VALUE REGION OFFSET
syscall NUMBER ARG1 ARG2 ARG3
```

Region numbers index a per-process table of 30 regions.

### System calls

| Number | Name             | Effect                                                        |
|--------|------------------|---------------------------------------------------------------|
| 0      | `sys_listsyscall`| prints the system call table                                  |
| 17     | `sys_memmap`     | memory operations (grow an area, copy a frame, byte I/O)      |
| 101    | `sys_killall`    | removes queued processes whose name is stored in region ARG1  |
| 440    | `sys_xxxhandler` | prints its first argument                                     |

Any other number does nothing.

## Using it as a library

- `ossim.program.parse_program` and `ossim.program.read_program` parse
  process descriptions into `Program` objects made of `Instruction`s.
- `ossim.process.load_process` builds a `Process` from a program file.
- `ossim.memphy.MemPhy` models a physical memory device with its list of free
  frames.
- `ossim.paging` encodes and decodes page table entries and virtual addresses.
- `ossim.vm.MemoryMap` holds a process's memory areas, symbol table and page
  table; `ossim.vm.inc_vma_limit` grows an area and maps new frames.
- `ossim.libmem` offers `liballoc`, `libfree`, `libread` and `libwrite`, the
  paged memory calls that the CPU issues.
- `ossim.syscall.syscall` and `ossim.syscall.libsyscall` dispatch system calls.
- `ossim.sched.Scheduler` is the multi-level queue scheduler, built on
  `ossim.queue.ProcessQueue`.
- `ossim.cpu.run` executes one instruction of a process.
- `ossim.timer.Timer` is the slot clock that the CPUs and the loader run on.
- `ossim.simulator.parse_config`, `read_config` and `run_simulation` run a
  whole simulation from Python; `run_simulation` returns the pids in the
  order the processes finished.

```python
from ossim.simulator import parse_config, run_simulation

config = parse_config("""
2 1 1
1048576
16777216 0 0 0
0 p0 1
""")
finished = run_simulation(config, "input/proc")
```

## What it does not do

- Paging is the only memory model; there is no flat, unpaged mode.
- Pages are never moved out to swap on their own. A page fault only copies a
  frame when the page is already marked as swapped.
- The value fetched by a `read` instruction is printed but not stored in any
  register.