"""FastAPI web adapter for the CHIP-8 interpreter."""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field
from typing import Optional
from pathlib import Path

from chip8 import run_program, RunOptions
from chip8.cpu import PROGRAM_START
from chip8.memory import MEMORY_SIZE


# Constants
MAX_ROM_SIZE = MEMORY_SIZE - PROGRAM_START
STATIC_DIR = Path(__file__).parent.parent / "static"


# Request/Response models
class RunOptionsModel(BaseModel):
    max_steps: int = Field(default=10000, ge=1, le=1000000)
    steps_per_tick: int = Field(default=10, ge=1, le=1000)
    shift_uses_vy: bool = False
    seed: Optional[int] = None
    trace: bool = True
    trace_watch: list[int] = Field(default_factory=list)
    trace_include_registers: bool = False
    trace_include_timers: bool = False
    input_keys: list[int] = Field(default_factory=list)
    pressed_keys: list[int] = Field(default_factory=list)
    stop_on_self_jump: bool = True


class RunRequest(BaseModel):
    rom: str = Field(description="ROM image as a hex string")
    options: Optional[RunOptionsModel] = None


class RunResponse(BaseModel):
    status: str
    steps_executed: int
    final_state: dict
    screen: list[str]
    trace_watch: list[int]
    trace: list[dict]
    error: Optional[dict] = None


# Create FastAPI app
app = FastAPI(
    title="CHIP-8 Interpreter",
    description="Web API for running CHIP-8 ROMs headlessly with tracing",
    version="0.1.0",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _check_keys(keys: list[int], name: str) -> None:
    for key in keys:
        if not 0 <= key <= 0xF:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid key code in {name}: {key}",
            )


@app.post("/api/run", response_model=RunResponse)
async def run_rom(request: RunRequest):
    """Run a CHIP-8 ROM.

    Args:
        request: ROM bytes as hex and execution options

    Returns:
        Execution result with final state, screen and trace
    """
    try:
        rom = bytes.fromhex(request.rom)
    except ValueError:
        raise HTTPException(status_code=400, detail="ROM is not a valid hex string")

    # Validate ROM size
    if len(rom) > MAX_ROM_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"ROM size exceeds limit of {MAX_ROM_SIZE} bytes",
        )

    opts = request.options or RunOptionsModel()
    _check_keys(opts.input_keys, "input_keys")
    _check_keys(opts.pressed_keys, "pressed_keys")

    run_opts = RunOptions(
        max_steps=opts.max_steps,
        steps_per_tick=opts.steps_per_tick,
        shift_uses_vy=opts.shift_uses_vy,
        seed=opts.seed,
        trace=opts.trace,
        trace_watch=opts.trace_watch,
        trace_include_registers=opts.trace_include_registers,
        trace_include_timers=opts.trace_include_timers,
        input_keys=opts.input_keys,
        pressed_keys=opts.pressed_keys,
        stop_on_self_jump=opts.stop_on_self_jump,
    )

    result = run_program(rom, options=run_opts)

    return result.to_dict()


# Mount static files AFTER API routes to prevent shadowing
if STATIC_DIR.exists():
    app.mount("/", StaticFiles(directory=str(STATIC_DIR), html=True), name="static")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
