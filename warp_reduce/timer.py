# Copyright (c) Microsoft Corporation.
# SPDX-License-Identifier: Apache-2.0

# DeepSpeed Team

from typing import Optional

import torch

from warp_reduce.errors import device_check


class CudaEventTimer(object):
    def __init__(self, start_event: torch.cuda.Event, end_event: torch.cuda.Event):
        self.start_event = start_event
        self.end_event = end_event

    def get_elapsed_msec(self) -> float:
        with device_check("event synchronize"):
            self.end_event.synchronize()
        with device_check("event elapsed time"):
            return self.start_event.elapsed_time(self.end_event)


class Timer:
    """Milliseconds between ``start`` and ``stop``.

    Events are recorded on ``stream`` (the current stream when omitted), so
    only work queued on that stream in between is measured.
    """

    def __init__(self, stream: Optional[torch.cuda.Stream] = None):
        self.started_ = False
        self.stream = stream
        self.start_event = None

    def _record(self) -> torch.cuda.Event:
        with device_check("event record"):
            event = torch.cuda.Event(enable_timing=True)
            event.record(self.stream)
        return event

    def start(self):
        """Start the timer."""
        assert not self.started_, "timer has already been started"
        self.start_event = self._record()
        self.started_ = True

    def stop(self) -> float:
        """Stop the timer."""
        assert self.started_, "timer is not started"
        self.started_ = False
        end_event = self._record()
        event_timer = CudaEventTimer(self.start_event, end_event)
        self.start_event = None
        return event_timer.get_elapsed_msec()
