"""Central configuration for the EEG monitor app."""

# Nordic UART service exposed by the headband; frames arrive on the RX characteristic.
UART_SERVICE_UUID = "6e400001-b5a3-f393-e0a9-e50e24dcca9e"
UART_RX_CHAR_UUID = "6e400003-b5a3-f393-e0a9-e50e24dcca9e"

DEFAULT_SCAN_TIMEOUT = 5.0
EEG_CHANNELS = 4
HISTORY_CAPACITY = 50
SAMPLE_RATE_HZ = 250  # simulator only; the real rate is measured by ThroughputMeter
FRAME_QUEUE_SIZE = 1024
PLOT_REFRESH_MS = 100

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
