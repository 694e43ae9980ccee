# voicetracks

Building blocks for playing audio in a voice bot:

- `voicetracks.track`: `Track`, a live, controllable audio instance, and
  `create_player` / `create_player_with_uuid`, which make a track together with its handle.
- `voicetracks.handle`: `TrackHandle`, a shareable handle that sends commands to its track.
- `voicetracks.commands`: the command types (`Play`, `Pause`, `Stop`, `SetVolume`, `Seek`,
  `AddEvent`, `Do`, `Request`, `SetLoop`, `MakePlayable`) and the thread-safe
  `CommandChannel` that carries them.
- `voicetracks.modes`: `PlayMode`, `LoopState`, `TrackState` and the `TrackError` family.
- `voicetracks.queue`: `TrackQueue`, which plays tracks one after another.
- `voicetracks.shards`: `Sharder`, `Shard` and `SerenityShardHandle`, for sending voice
  state updates over gateway connections and buffering them while a shard is disconnected.
- `voicetracks.ws`: helpers that send and receive JSON over a websocket.
- `voicetracks.sine`: `make_sine` and `make_pcm_sine`, sine-wave test signals.

## Installation

```
pip install voicetracks
```

With the test tools:

```
pip install "voicetracks[test]"
```

## Tracks and handles

A track reads from an input source. The source is any object that matches the
`InputSource` protocol:

```python
from datetime import timedelta
from types import SimpleNamespace

class MySource:
    def __init__(self):
        self.metadata = SimpleNamespace(duration=timedelta(seconds=30))

    def is_seekable(self):
        return True

    def seek_time(self, position):
        return position          # the position reached, or None if seeking failed

    def make_playable(self):
        pass
```

Create a track and its handle, then send commands through the handle:

```python
from voicetracks.track import create_player
from voicetracks.modes import PlayMode, SeekUnsupported

track, handle = create_player(MySource())

handle.pause()
handle.set_volume(0.5)

notifications = []
track.process_commands(0, notifications.append)   # run on the audio side

assert track.playing is PlayMode.PAUSE
assert track.volume == 0.5
```

A command changes the track only when `Track.process_commands` runs. Each change is
reported to the callback as a `TrackStateChange`, and each added event as a
`TrackEventAdded`.

`await handle.get_info()` sends a `Request` and waits until the track replies with a
`TrackState`. If the command channel is closed first, it raises `TrackFinished`.

A track that has stopped or ended cannot be restarted. `PlayMode.change_to` keeps it in
its final mode.

Handle methods raise `TrackError` subclasses:

- `TrackFinished`: the command channel has been closed, so the track is gone.
- `SeekUnsupported`: the input cannot seek. `seek_time`, `enable_loop`, `disable_loop` and
  `loop_for` raise it.

`LoopState.finite(n)` sets a loop count and `LoopState.infinite()` loops forever.
`Track.do_loop` uses up one loop each time it is called.

## Queues

A queue needs a driver, which is any object with a `play(track)` method:

```python
from voicetracks.queue import TrackQueue

queue = TrackQueue()
handle = queue.add_source(MySource(), driver)
queue.skip()                         # sends Stop to the head track
queue.on_track_end(handle.uuid())    # pops the head, then starts the next playable track
print(len(queue), [h.uuid() for h in queue.current_queue()])
queue.stop()                         # stops every queued track and clears the queue
```

Each track added after the first starts paused. The queue adds listener entries to the
track's `events` list: one for the end of the track and, when the source metadata has a
`duration`, one that calls `preload_next` five seconds before the end.

## Shards

```python
from voicetracks.shards import Sharder, SerenitySharder

sharder = Sharder(SerenitySharder())
shard = sharder.get_shard(0)
await shard.update_voice_state(guild_id=1234, channel_id=5678, self_deaf=False, self_mute=False)

sharder.register_shard_handle(0, outgoing.append)   # flushes buffered messages in order
```

If no sender is registered, messages are buffered. A guild or channel id of zero raises
`IllegalGuild` or `IllegalChannel`. To use another gateway library, wrap it in a
`GenericSharder` that returns `VoiceUpdate` objects.

## Websocket JSON

- `connect(url)` opens a client connection with no message size limit.
- `send_json(sink, value)` sends `value` as a text message.
- `recv_json(stream)` returns one decoded message, or `None` if nothing arrives within
  500 ms or the text is not valid JSON.
- `recv_json_no_timeout(stream)` waits as long as it takes.

Binary messages raise `UnexpectedBinaryMessage`. A close frame raises `WsClosed`. Both are
subclasses of `WsError`.

## Test signals

```python
from voicetracks.sine import make_sine, make_pcm_sine

floats = make_sine(960, stereo=True)     # little-endian float32, each sample written twice
pcm = make_pcm_sine(960, stereo=False)   # little-endian int16, amplitude 10000
```

## What this package does not do

The package has no audio driver or mixer. It does not decode, mix or send audio, and
nothing in it fires the listeners stored in `Track.events`. You have to call
`process_commands`, `step_frame`, `end` and `TrackQueue.on_track_end` from your own
playback loop. It also has no gateway client of its own: the shard classes only build voice
state update payloads and pass them to the senders you provide.