"""Bridge orchestrator - opens the transports and runs one forwarder.

The Bridge owns everything the forwarder only borrows: the serial port, both
UDP endpoints and the cancellation token. Teardown runs in a fixed order:
forwarder first, then the sending socket, the receiving socket and finally the
serial port.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fgbridge.cancel import CancelToken
from fgbridge.config import BridgeConfig
from fgbridge.forwarder import Forwarder, create_forwarder
from fgbridge.transports.base import SerialStreamInterface, TransportInterface
from fgbridge.transports.udp import DatagramReceiver, DatagramSender

logger = logging.getLogger("fgbridge.bridge")


class Bridge:
    """Serial <-> UDP bridge for one cockpit device.

    Example:
        bridge = Bridge(BridgeConfig(serial_port="COM19", udp_in_port=5500, udp_out_port=5501))
        await bridge.start()
        ...
        await bridge.stop()

    Transports can be injected (tests use the mock transports); otherwise they
    are created from the config.
    """

    def __init__(
        self,
        config: BridgeConfig,
        serial: Optional[SerialStreamInterface] = None,
        sender: Optional[TransportInterface] = None,
        receiver: Optional[TransportInterface] = None,
    ):
        self.config = config
        self.serial = serial if serial is not None else self._make_serial(config)
        self.sender = sender if sender is not None else DatagramSender(config.udp_out_ip, config.udp_out_port)
        self.receiver = receiver if receiver is not None else DatagramReceiver(config.udp_in_port)
        self.token = CancelToken()
        self._forwarder: Optional[Forwarder] = None
        self._running = False

    @staticmethod
    def _make_serial(config: BridgeConfig) -> SerialStreamInterface:
        from fgbridge.transports.serial_async import SerialTransport

        return SerialTransport(config.serial_port, config.baudrate)

    async def start(self) -> None:
        """Open the transports and start the forwarder."""
        logger.info("Starting bridge (%s forwarder)...", self.config.mode.value)
        logger.debug("Creating UDP endpoints")
        await self.receiver.connect()
        try:
            await self.sender.connect()
            logger.debug("Opening serial port %s", self.config.serial_port)
            await self.serial.connect()
        except Exception:
            await self.sender.disconnect()
            await self.receiver.disconnect()
            raise

        self._forwarder = create_forwarder(
            self.config.mode, self.serial, self.sender, self.receiver, self.token
        )
        self._forwarder.start()
        self._running = True
        logger.info("Bridge started successfully")

    async def stop(self) -> None:
        """Cancel the forwarder, wait for it and close the transports."""
        if not self._running:
            return
        logger.info("Stopping bridge...")
        self._running = False
        self.token.cancel()
        try:
            if self._forwarder:
                await self._forwarder.wait_for_stop()
        finally:
            await self.sender.disconnect()
            await self.receiver.disconnect()
            await self.serial.disconnect()
            logger.info("Bridge stopped")

    async def wait(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Block until `stop_event` is set or a relay loop fails."""
        if not self._forwarder:
            raise RuntimeError("Bridge not started")
        waiters = [asyncio.ensure_future(self._forwarder.failed.wait())]
        if stop_event is not None:
            waiters.append(asyncio.ensure_future(stop_event.wait()))
        try:
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for w in waiters:
                w.cancel()
        if self._forwarder.failed.is_set():
            logger.error("A relay loop failed, shutting the bridge down")
            self.token.cancel()

    @property
    def forwarder(self) -> Optional[Forwarder]:
        return self._forwarder

    @property
    def is_running(self) -> bool:
        return self._running

    def get_stats(self) -> dict:
        stats = {
            "running": self._running,
            "mode": self.config.mode.value,
            "serial_open": self.serial.is_open,
        }
        if self._forwarder:
            stats.update(self._forwarder.stats.as_dict())
        return stats
